"""Delta between a topic's desired configuration and its live one."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from topology_engine.models.topic import ConfigEntry, TopicSpec

logger = logging.getLogger(__name__)


@dataclass
class TopicConfigUpdatePlan:
    """Config and partition changes needed to converge one topic.

    ``new_configs`` holds keys to set that are either absent on the topic
    or currently inherited from a static source; ``updated_configs`` maps
    dynamically-set keys to ``(old, new)``; ``deleted_configs`` maps keys
    that are explicitly set on the topic but no longer desired to their
    current value.
    """

    topic: TopicSpec
    current_partitions: int | None = None
    new_configs: dict[str, str] = field(default_factory=dict)
    updated_configs: dict[str, tuple[str | None, str]] = field(default_factory=dict)
    deleted_configs: dict[str, str | None] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        topic: TopicSpec,
        live_entries: Iterable[ConfigEntry],
        live_partitions: int | None = None,
    ) -> TopicConfigUpdatePlan:
        """Compare *topic* to the live config entries and partition count.

        Parameters
        ----------
        topic:
            Desired topic.
        live_entries:
            The topic's config entries as described by the cluster,
            including inherited defaults.
        live_partitions:
            Current partition count, or ``None`` to skip the partition check.
        """
        plan = cls(topic=topic, current_partitions=live_partitions)
        live = {entry.name: entry for entry in live_entries}
        plan.add_new_or_updated_configs(topic.config, live)
        plan.add_deleted_configs(topic.config, live)
        return plan

    @property
    def topic_name(self) -> str:
        return self.topic.name

    def add_new_or_updated_configs(self, desired: Mapping[str, str], live: Mapping[str, ConfigEntry]) -> None:
        for name, value in desired.items():
            entry = live.get(name)
            if entry is None:
                self.new_configs[name] = value
                continue
            if entry.value == value:
                continue
            logger.debug(
                "Config %s of topic %s differs: live=%s desired=%s source=%s",
                name,
                self.topic.name,
                entry.value,
                value,
                entry.source.value,
            )
            if entry.is_dynamic:
                self.updated_configs[name] = (entry.value, value)
            else:
                self.new_configs[name] = value

    def add_deleted_configs(self, desired: Mapping[str, str], live: Mapping[str, ConfigEntry]) -> None:
        for name, entry in live.items():
            if entry.is_explicit and name not in desired:
                self.deleted_configs[name] = entry.value

    @property
    def update_partition_count(self) -> bool:
        """Partition counts only ever grow."""
        desired = self.topic.partitions
        return desired is not None and self.current_partitions is not None and desired > self.current_partitions

    @property
    def desired_partitions(self) -> int | None:
        return self.topic.partitions

    def has_new_configs(self) -> bool:
        return bool(self.new_configs)

    def has_updated_configs(self) -> bool:
        return bool(self.updated_configs)

    def has_deleted_configs(self) -> bool:
        return bool(self.deleted_configs)

    def has_changes(self) -> bool:
        return (
            self.update_partition_count
            or self.has_new_configs()
            or self.has_updated_configs()
            or self.has_deleted_configs()
        )

    def changes(self) -> dict[str, Any]:
        """Return the changes as a sorted, JSON-compatible mapping."""
        changes: dict[str, Any] = {}
        if self.new_configs:
            changes["NewConfigs"] = dict(sorted(self.new_configs.items()))
        if self.updated_configs:
            changes["UpdatedConfigs"] = {
                name: f"{new} ({old})" for name, (old, new) in sorted(self.updated_configs.items())
            }
        if self.deleted_configs:
            changes["DeletedConfigs"] = dict(sorted(self.deleted_configs.items()))
        if self.update_partition_count:
            changes["UpdatedPartitionCount"] = self.topic.partitions
        return changes
