"""Base class for per-resource-kind reconcilers."""

from __future__ import annotations

import abc
import logging

from topology_engine.actions.base import Action
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.models.topology import Topology
from topology_engine.plan import ExecutionPlan
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


class Reconciler(abc.ABC):
    """Compute the actions that converge one resource kind.

    Parameters
    ----------
    settings:
        Engine settings (state source, verification and deletion flags).
    resource_filter:
        Ownership predicate.  Built from *settings* when omitted.
    """

    kind: str = ""

    def __init__(self, settings: Settings, resource_filter: ResourceFilter | None = None) -> None:
        self.settings = settings
        self.resource_filter = resource_filter or ResourceFilter.from_settings(settings)

    @abc.abstractmethod
    def plan_actions(self, topology: Topology, state: Snapshot) -> list[Action]:
        """Return the actions needed, in execution order.

        Parameters
        ----------
        topology:
            Desired state.
        state:
            Snapshot recorded by the previous pass.
        """

    def update_plan(self, plan: ExecutionPlan, topology: Topology) -> list[Action]:
        """Append this reconciler's creates and updates to *plan*.

        Returns the deletes, in planned order, for the caller to append once
        every reconciler has added its creates.
        """
        actions = self.plan_actions(topology, plan.state)
        logger.info("%s: %d action(s) planned", self.kind or type(self).__name__, len(actions))
        deletes: list[Action] = []
        for action in actions:
            if action.deletes:
                deletes.append(action)
            else:
                plan.add(action)
        return deletes
