"""Register schemas and align subject compatibility for one topic."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from topology_engine.actions.base import BaseAction
from topology_engine.interfaces import SchemaRegistryManager
from topology_engine.models.topic import TopicSpec
from topology_engine.schemas.change import SchemaChange

logger = logging.getLogger(__name__)


class RegisterSchema(BaseAction):
    def __init__(self, topic_name: str, changes: list[SchemaChange]) -> None:
        self.topic_name = topic_name
        self.changes = sorted(changes, key=lambda change: change.subject_name)

    @classmethod
    def create_if_changed(
        cls,
        manager: SchemaRegistryManager,
        topic: TopicSpec,
        root_path: Path | str = ".",
    ) -> RegisterSchema | None:
        """Return an action for the subjects of *topic* that need changes, or ``None``."""
        changes = []
        for subject in topic.subjects:
            subject_name = subject.subject_name(topic.name, topic.subject_name_strategy)
            change = SchemaChange.detect(manager, subject, subject_name, root_path)
            if change is not None:
                changes.append(change)
        return cls(topic.name, changes) if changes else None

    def run(self) -> None:
        logger.debug("Registering schemas for topic %s", self.topic_name)
        for change in self.changes:
            change.apply()

    def props(self) -> dict[str, Any]:
        if not self.changes:
            return {}
        return {
            "Operation": self.name,
            "Topic": self.topic_name,
            "Schemas": {change.subject_name: change.to_props() for change in self.changes},
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name("register.schema", self.topic_name, change.subject_name),
                "operation": self.name,
                "topic": self.topic_name,
                "schema": {change.subject_name: change.to_props()},
            }
            for change in self.changes
        ]
