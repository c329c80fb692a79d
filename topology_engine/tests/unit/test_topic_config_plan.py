"""Unit tests for topology_engine.topics.config_plan."""

from __future__ import annotations

from topology_engine.models.topic import ConfigEntry, ConfigSource, TopicSpec
from topology_engine.topics.config_plan import TopicConfigUpdatePlan


def _dynamic(name: str, value: str) -> ConfigEntry:
    return ConfigEntry(name=name, value=value, source=ConfigSource.DYNAMIC_TOPIC_CONFIG)


def _static(name: str, value: str) -> ConfigEntry:
    return ConfigEntry(name=name, value=value, source=ConfigSource.STATIC_CONFIG)


def _default(name: str, value: str) -> ConfigEntry:
    return ConfigEntry(name=name, value=value, source=ConfigSource.DEFAULT_CONFIG)


# ---------------------------------------------------------------------------
# Config deltas
# ---------------------------------------------------------------------------


class TestConfigDelta:
    def test_update_and_delete(self):
        topic = TopicSpec(name="orders", config={"retention.bytes": "200"})
        plan = TopicConfigUpdatePlan.build(
            topic,
            [_dynamic("retention.bytes", "100"), _static("cleanup.policy", "compact")],
        )
        assert plan.updated_configs == {"retention.bytes": ("100", "200")}
        assert plan.deleted_configs == {"cleanup.policy": "compact"}
        assert plan.new_configs == {}
        assert plan.has_changes()

    def test_missing_key_is_new(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t", config={"retention.ms": "5"}), [])
        assert plan.new_configs == {"retention.ms": "5"}

    def test_differing_static_value_is_new(self):
        plan = TopicConfigUpdatePlan.build(
            TopicSpec(name="t", config={"segment.ms": "10"}),
            [_static("segment.ms", "20")],
        )
        assert plan.new_configs == {"segment.ms": "10"}
        assert plan.updated_configs == {}

    def test_differing_default_value_is_new(self):
        plan = TopicConfigUpdatePlan.build(
            TopicSpec(name="t", config={"segment.ms": "10"}),
            [_default("segment.ms", "20")],
        )
        assert plan.new_configs == {"segment.ms": "10"}

    def test_defaults_are_never_deleted(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t"), [_default("retention.ms", "1")])
        assert not plan.has_changes()

    def test_equal_values_are_converged(self):
        plan = TopicConfigUpdatePlan.build(
            TopicSpec(name="t", config={"retention.ms": "1"}),
            [_dynamic("retention.ms", "1")],
        )
        assert not plan.has_changes()
        assert plan.changes() == {}

    def test_changes_rendering(self):
        topic = TopicSpec(name="t", config={"b": "2", "a": "1"})
        plan = TopicConfigUpdatePlan.build(topic, [_dynamic("b", "0"), _dynamic("z", "9")])
        assert plan.changes() == {
            "NewConfigs": {"a": "1"},
            "UpdatedConfigs": {"b": "2 (0)"},
            "DeletedConfigs": {"z": "9"},
        }


# ---------------------------------------------------------------------------
# Partitions
# ---------------------------------------------------------------------------


class TestPartitions:
    def test_grow(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t", partitions=6), [], live_partitions=3)
        assert plan.update_partition_count
        assert plan.desired_partitions == 6
        assert plan.changes() == {"UpdatedPartitionCount": 6}

    def test_never_shrink(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t", partitions=2), [], live_partitions=3)
        assert not plan.update_partition_count
        assert not plan.has_changes()

    def test_unknown_live_count_is_ignored(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t", partitions=2), [])
        assert not plan.update_partition_count

    def test_unset_desired_count_is_ignored(self):
        plan = TopicConfigUpdatePlan.build(TopicSpec(name="t"), [], live_partitions=3)
        assert not plan.update_partition_count
