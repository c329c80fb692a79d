"""Topic reconciliation: create, rename, reconfigure, register schemas, delete."""

from __future__ import annotations

import logging
from pathlib import Path

from topology_engine.actions.base import Action
from topology_engine.actions.schemas import RegisterSchema
from topology_engine.actions.topics import CreateTopic, DeleteTopics, RenameTopic, UpdateTopicConfig
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.interfaces import ClusterAdmin, SchemaRegistryManager
from topology_engine.models.topic import TopicSpec
from topology_engine.models.topology import Topology
from topology_engine.reconcile.base import Reconciler
from topology_engine.state.snapshot import Snapshot
from topology_engine.topics.config_plan import TopicConfigUpdatePlan

logger = logging.getLogger(__name__)

INTERNAL_TOPIC_PREFIX = "_"


class TopicReconciler(Reconciler):
    """Converge topics, their configs and their schema subjects.

    Creation and config drift are always judged against the live cluster.
    Deletion candidates come from the live listing or the snapshot,
    depending on ``fetch_state_from_cluster``, and are only deleted when
    ``allow_delete_topics`` is set.  Internal topics (leading ``_``) are
    never deleted.
    """

    kind = "topic"

    def __init__(
        self,
        settings: Settings,
        admin: ClusterAdmin,
        schema_registry: SchemaRegistryManager | None = None,
        root_path: Path | str = ".",
        resource_filter: ResourceFilter | None = None,
    ) -> None:
        super().__init__(settings, resource_filter)
        self.admin = admin
        self.schema_registry = schema_registry
        self.root_path = Path(root_path)

    def _topic_actions(self, topic: TopicSpec, live: set[str]) -> list[Action]:
        if topic.name not in live:
            if topic.renamed_from and topic.renamed_from in live:
                return [RenameTopic(self.admin, topic, topic.renamed_from)]
            return [CreateTopic(self.admin, topic)]

        plan = TopicConfigUpdatePlan.build(
            topic,
            self.admin.describe_topic_config(topic.name),
            self.admin.partition_count(topic.name) if topic.partitions is not None else None,
        )
        if plan.has_changes():
            return [UpdateTopicConfig(self.admin, plan)]
        return []

    def _delete_candidates(self, desired: set[str], live: set[str], state: Snapshot) -> list[str]:
        known = live if self.settings.fetch_state_from_cluster else state.topics & live
        return sorted(
            name
            for name in known
            if name not in desired
            and not name.startswith(INTERNAL_TOPIC_PREFIX)
            and self.resource_filter.matches_topic(name)
        )

    def plan_actions(self, topology: Topology, state: Snapshot) -> list[Action]:
        live = set(self.admin.list_topics())
        topics = [topic for topic in topology.all_topics() if self.resource_filter.matches_topic(topic.name)]

        actions: list[Action] = []
        for topic in topics:
            actions.extend(self._topic_actions(topic, live))
            if self.schema_registry is not None and topic.subjects:
                register = RegisterSchema.create_if_changed(self.schema_registry, topic, self.root_path)
                if register is not None:
                    actions.append(register)

        desired = {topic.name for topic in topics}
        desired.update(topic.renamed_from for topic in topics if topic.renamed_from)
        stale = self._delete_candidates(desired, live, state)
        if stale and self.settings.allow_delete_topics:
            actions.append(DeleteTopics(self.admin, stale))
        elif stale:
            logger.debug("Keeping %d topic(s) not in desired state because deletion is disabled", len(stale))
        return actions
