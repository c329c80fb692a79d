"""Unit tests for topology_engine.reconcile.topics."""

from __future__ import annotations

from pathlib import Path

from conftest import FakeClusterAdmin, FakeSchemaRegistry

from topology_engine.actions import CreateTopic, DeleteTopics, RegisterSchema, RenameTopic, UpdateTopicConfig
from topology_engine.config import Settings
from topology_engine.models.topic import ConfigEntry, ConfigSource, Subject, TopicSpec
from topology_engine.models.topology import Project, Topology
from topology_engine.reconcile import TopicReconciler
from topology_engine.state.snapshot import Snapshot


def _topology(*topics: TopicSpec) -> Topology:
    return Topology(projects=[Project(name="p", topics=list(topics))])


def _dynamic(name: str, value: str) -> ConfigEntry:
    return ConfigEntry(name=name, value=value, source=ConfigSource.DYNAMIC_TOPIC_CONFIG)


# ---------------------------------------------------------------------------
# Create, update, rename
# ---------------------------------------------------------------------------


class TestTopicChanges:
    def test_create_missing(self, settings: Settings, admin: FakeClusterAdmin):
        actions = TopicReconciler(settings, admin).plan_actions(_topology(TopicSpec(name="orders")), Snapshot())
        assert [type(a) for a in actions] == [CreateTopic]

    def test_existing_converged(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("orders", partitions=3, **{"retention.ms": _dynamic("retention.ms", "1000")})
        topic = TopicSpec(name="orders", partitions=3, config={"retention.ms": "1000"})
        assert TopicReconciler(settings, admin).plan_actions(_topology(topic), Snapshot()) == []

    def test_config_drift(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("orders", partitions=1, **{"retention.ms": _dynamic("retention.ms", "1000")})
        topic = TopicSpec(name="orders", partitions=2, config={"retention.ms": "2000"})
        actions = TopicReconciler(settings, admin).plan_actions(_topology(topic), Snapshot())
        assert [type(a) for a in actions] == [UpdateTopicConfig]
        assert actions[0].plan.changes() == {
            "UpdatedConfigs": {"retention.ms": "2000 (1000)"},
            "UpdatedPartitionCount": 2,
        }

    def test_rename(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("orders.v1")
        topic = TopicSpec(name="orders.v2", renamed_from="orders.v1")
        reconciler = TopicReconciler(settings.model_copy(update={"allow_delete_topics": True}), admin)
        actions = reconciler.plan_actions(_topology(topic), Snapshot(topics={"orders.v1"}))
        assert [type(a) for a in actions] == [RenameTopic]
        assert actions[0].old_name == "orders.v1"

    def test_rename_already_done(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("orders.v2")
        topic = TopicSpec(name="orders.v2", renamed_from="orders.v1")
        assert TopicReconciler(settings, admin).plan_actions(_topology(topic), Snapshot()) == []

    def test_unmanaged_topics_ignored(self, settings: Settings, admin: FakeClusterAdmin):
        reconciler = TopicReconciler(settings.model_copy(update={"topic_managed_prefixes": ["team."]}), admin)
        topology = _topology(TopicSpec(name="team.orders"), TopicSpec(name="other.orders"))
        actions = reconciler.plan_actions(topology, Snapshot())
        assert [a.topic.name for a in actions] == ["team.orders"]


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


class TestTopicDeletion:
    def test_gated(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("stale")
        assert TopicReconciler(settings, admin).plan_actions(_topology(), Snapshot(topics={"stale"})) == []

    def test_deletes_recorded_live_topics(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("stale")
        admin.add_live_topic("foreign")
        reconciler = TopicReconciler(settings.model_copy(update={"allow_delete_topics": True}), admin)
        actions = reconciler.plan_actions(_topology(), Snapshot(topics={"stale", "already-gone"}))
        assert [type(a) for a in actions] == [DeleteTopics]
        assert actions[0].names == ["stale"]

    def test_live_source_never_deletes_internal(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("_schemas")
        admin.add_live_topic("stale")
        reconciler = TopicReconciler(
            settings.model_copy(update={"allow_delete_topics": True, "fetch_state_from_cluster": True}),
            admin,
        )
        actions = reconciler.plan_actions(_topology(), Snapshot())
        assert actions[0].names == ["stale"]

    def test_creates_before_deletes(self, settings: Settings, admin: FakeClusterAdmin):
        admin.add_live_topic("stale")
        reconciler = TopicReconciler(settings.model_copy(update={"allow_delete_topics": True}), admin)
        actions = reconciler.plan_actions(_topology(TopicSpec(name="fresh")), Snapshot(topics={"stale"}))
        assert [type(a) for a in actions] == [CreateTopic, DeleteTopics]


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class TestTopicSchemas:
    def test_register_after_create(self, settings: Settings, admin: FakeClusterAdmin, tmp_path: Path):
        (tmp_path / "order.avsc").write_text('{"type": "string"}')
        registry = FakeSchemaRegistry()
        topic = TopicSpec(name="orders", subjects=[Subject(schema_file="order.avsc")])
        actions = TopicReconciler(settings, admin, registry, tmp_path).plan_actions(_topology(topic), Snapshot())
        assert [type(a) for a in actions] == [CreateTopic, RegisterSchema]

    def test_registered_subject_is_quiet(self, settings: Settings, admin: FakeClusterAdmin, tmp_path: Path):
        (tmp_path / "order.avsc").write_text('{"type": "string"}')
        registry = FakeSchemaRegistry()
        registry.schemas["orders-value"]['{"type": "string"}'] = 1
        admin.add_live_topic("orders")
        topic = TopicSpec(name="orders", subjects=[Subject(schema_file="order.avsc")])
        actions = TopicReconciler(settings, admin, registry, tmp_path).plan_actions(_topology(topic), Snapshot())
        assert actions == []

    def test_no_registry_no_schema_actions(self, settings: Settings, admin: FakeClusterAdmin):
        topic = TopicSpec(name="orders", subjects=[Subject(schema_file="order.avsc")])
        actions = TopicReconciler(settings, admin).plan_actions(_topology(topic), Snapshot())
        assert [type(a) for a in actions] == [CreateTopic]
