"""Detect and apply the registry changes one schema subject needs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from topology_engine.errors import ConfigurationError
from topology_engine.interfaces import SchemaRegistryManager
from topology_engine.models.topic import Subject

logger = logging.getLogger(__name__)


def _normalise_compatibility(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value.upper() or None


@dataclass(frozen=True)
class SchemaChange:
    """Pending registration and/or compatibility update for one subject.

    Built with :meth:`detect`, which returns ``None`` when the subject is
    already converged.
    """

    manager: SchemaRegistryManager
    subject: Subject
    subject_name: str
    schema: str
    schema_id: int | None
    current_compatibility: str | None

    @classmethod
    def detect(
        cls,
        manager: SchemaRegistryManager,
        subject: Subject,
        subject_name: str,
        root_path: Path | str = ".",
    ) -> SchemaChange | None:
        """Return the change *subject* needs, or ``None``.

        A subject without a schema file never changes.  Otherwise the
        registry is asked whether the schema is registered under
        *subject_name* and, independently, for the subject's current
        compatibility.

        Raises
        ------
        ConfigurationError
            If the referenced schema file cannot be read.
        """
        if subject.schema_file is None:
            return None

        schema_path = Path(root_path) / subject.schema_file
        try:
            schema = schema_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read schema file {schema_path} for subject {subject_name}: {exc}") from exc

        schema_id = manager.get_id(subject_name, schema, subject.format)
        current = _normalise_compatibility(manager.get_compatibility(subject_name))

        change = cls(
            manager=manager,
            subject=subject,
            subject_name=subject_name,
            schema=schema,
            schema_id=schema_id,
            current_compatibility=current,
        )
        if not change.has_changes():
            logger.debug("Subject %s is up to date", subject_name)
            return None
        return change

    @property
    def needs_registration(self) -> bool:
        return self.schema_id is None

    @property
    def compatibility_changed(self) -> bool:
        desired = _normalise_compatibility(self.subject.compatibility)
        return desired is not None and desired != self.current_compatibility

    def has_changes(self) -> bool:
        return self.needs_registration or self.compatibility_changed

    def apply(self) -> None:
        """Register the schema if needed, then update compatibility if it differs."""
        if self.needs_registration:
            schema_id = self.manager.register(self.subject_name, self.schema, self.subject.format)
            logger.info("Registered schema for subject %s with id %s", self.subject_name, schema_id)
        compatibility = self.subject.compatibility
        if self.compatibility_changed and compatibility is not None:
            self.manager.set_compatibility(self.subject_name, compatibility)
            logger.info("Set compatibility of subject %s to %s", self.subject_name, compatibility)

    def to_props(self) -> dict[str, str]:
        """Describe the change; ``*`` marks the parts that will be applied."""
        return {
            f"[{'*' if self.needs_registration else ''}]file": self.subject.schema_file or "",
            "format": self.subject.format,
            f"[{'*' if self.compatibility_changed else ''}]compatibility": self.subject.compatibility or "",
        }
