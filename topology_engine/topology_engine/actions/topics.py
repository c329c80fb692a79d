"""Topic lifecycle actions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from topology_engine.actions.base import BaseAction
from topology_engine.errors import ResourceConflictError
from topology_engine.interfaces import ClusterAdmin
from topology_engine.models.topic import TopicSpec
from topology_engine.state.snapshot import Snapshot
from topology_engine.topics.config_plan import TopicConfigUpdatePlan

logger = logging.getLogger(__name__)


def _create(admin: ClusterAdmin, topic: TopicSpec) -> None:
    try:
        admin.create_topic(topic)
    except ResourceConflictError:
        logger.info("Topic %s already exists", topic.name)


class CreateTopic(BaseAction):
    """Create a topic; an existing topic counts as converged."""

    def __init__(self, admin: ClusterAdmin, topic: TopicSpec) -> None:
        self._admin = admin
        self.topic = topic

    def run(self) -> None:
        logger.debug("Creating topic %s", self.topic.name)
        _create(self._admin, self.topic)

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_topics([self.topic.name])

    def props(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "Operation": self.name,
            "Topic": self.topic.name,
            "Action": "create",
        }
        if self.topic.partitions is not None:
            props["Partitions"] = self.topic.partitions
        if self.topic.replication_factor is not None:
            props["ReplicationFactor"] = self.topic.replication_factor
        if self.topic.config:
            props["Configs"] = dict(sorted(self.topic.config.items()))
        return props

    def detailed_props(self) -> list[dict[str, Any]]:
        detail = {key.lower(): value for key, value in self.props().items()}
        detail.pop("action")
        detail["resource_name"] = self.resource_name("create.topic", self.topic.name)
        return [detail]


class DeleteTopics(BaseAction):
    deletes = True

    def __init__(self, admin: ClusterAdmin, names: Iterable[str]) -> None:
        self._admin = admin
        self.names: list[str] = sorted(set(names))

    def run(self) -> None:
        logger.debug("Deleting topics %s", self.names)
        self._admin.delete_topics(self.names)

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.remove_topics(self.names)

    def props(self) -> dict[str, Any]:
        return {"Operation": self.name, "Topics": self.names}

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name("delete.topic", name),
                "operation": self.name,
                "topic": name,
            }
            for name in self.names
        ]


class RenameTopic(BaseAction):
    """Create the topic under its new name, then delete the old one."""

    def __init__(self, admin: ClusterAdmin, topic: TopicSpec, old_name: str) -> None:
        self._admin = admin
        self.topic = topic
        self.old_name = old_name

    def run(self) -> None:
        logger.info("Renaming topic %s to %s", self.old_name, self.topic.name)
        _create(self._admin, self.topic)
        self._admin.delete_topics([self.old_name])

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_topics([self.topic.name])
        state.remove_topics([self.old_name])

    def props(self) -> dict[str, Any]:
        return {
            "Operation": self.name,
            "Topic": self.topic.name,
            "RenamedFrom": self.old_name,
            "Action": "rename",
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name("rename.topic", self.old_name, self.topic.name),
                "operation": self.name,
                "topic": self.topic.name,
                "renamed_from": self.old_name,
            }
        ]


class UpdateTopicConfig(BaseAction):
    """Grow partitions first, then apply the config delta of *plan*."""

    def __init__(self, admin: ClusterAdmin, plan: TopicConfigUpdatePlan) -> None:
        self._admin = admin
        self.plan = plan

    def run(self) -> None:
        name = self.plan.topic_name
        logger.debug("Updating config of topic %s", name)
        partitions = self.plan.desired_partitions
        if self.plan.update_partition_count and partitions is not None:
            logger.debug("Increasing partitions of topic %s to %d", name, partitions)
            self._admin.increase_partitions(name, partitions)
        if self.plan.has_new_configs() or self.plan.has_updated_configs() or self.plan.has_deleted_configs():
            self._admin.alter_topic_config(self.plan)

    def props(self) -> dict[str, Any]:
        return {
            "Operation": self.name,
            "Topic": self.plan.topic_name,
            "Action": "update",
            "Changes": self.plan.changes(),
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        detail = {key.lower(): value for key, value in self.props().items()}
        detail.pop("action")
        detail["resource_name"] = self.resource_name("update.topic.config", self.plan.topic_name)
        return [detail]
