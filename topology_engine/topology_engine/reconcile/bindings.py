"""Access-control binding reconciliation."""

from __future__ import annotations

from topology_engine.actions.access import ClearBindings, CreateBindings
from topology_engine.actions.base import Action
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.interfaces import AccessControlProvider
from topology_engine.models.binding import Binding
from topology_engine.models.topology import Topology
from topology_engine.reconcile.base import Reconciler
from topology_engine.reconcile.diff import ReconcileSpec, reconcile
from topology_engine.state.snapshot import Snapshot


class BindingsReconciler(Reconciler):
    """Converge the live bindings to the topology's bindings.

    Bindings of the engine's own principal (``internal_principal``) are
    never considered part of the actual state, so they are never deleted.
    """

    kind = "binding"

    def __init__(
        self,
        settings: Settings,
        provider: AccessControlProvider,
        resource_filter: ResourceFilter | None = None,
    ) -> None:
        super().__init__(settings, resource_filter)
        self.provider = provider

    def live_bindings(self) -> list[Binding]:
        return [binding for bindings in self.provider.list_acls().values() for binding in bindings]

    def _is_internal(self, binding: Binding) -> bool:
        internal = self.settings.internal_principal
        return internal is not None and binding.principal.lower() == internal.lower()

    def plan_actions(self, topology: Topology, state: Snapshot) -> list[Action]:
        return reconcile(
            ReconcileSpec(
                kind=self.kind,
                desired=topology.all_bindings,
                recorded=lambda: state.bindings,
                live=self.live_bindings,
                matches=self.resource_filter.matches_binding,
                key=lambda binding: binding,
                create=lambda items: [CreateBindings(self.provider, items)],
                delete=lambda items: [ClearBindings(self.provider, items)],
                exclude=self._is_internal,
                fetch_from_cluster=self.settings.fetch_state_from_cluster,
                verify_remote_state=self.settings.verify_remote_state,
                allow_delete=self.settings.allow_delete_bindings,
            )
        )
