"""Topic configuration delta computation."""

from topology_engine.topics.config_plan import TopicConfigUpdatePlan

__all__ = ["TopicConfigUpdatePlan"]
