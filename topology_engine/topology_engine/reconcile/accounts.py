"""Service-account principal reconciliation."""

from __future__ import annotations

import logging

from topology_engine.actions.accounts import ClearAccounts, CreateAccounts
from topology_engine.actions.base import Action
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.interfaces import PrincipalProvider
from topology_engine.models.account import ServiceAccount
from topology_engine.models.topology import Topology
from topology_engine.reconcile.base import Reconciler
from topology_engine.reconcile.diff import ReconcileSpec, reconcile
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


class AccountsReconciler(Reconciler):
    """Create accounts for every principal the topology references.

    Accounts are matched by name.  Only active when
    ``enable_principal_management`` is set.
    """

    kind = "service account"

    def __init__(
        self,
        settings: Settings,
        provider: PrincipalProvider,
        resource_filter: ResourceFilter | None = None,
    ) -> None:
        super().__init__(settings, resource_filter)
        self.provider = provider

    def desired_accounts(self, topology: Topology) -> list[ServiceAccount]:
        return [ServiceAccount.pending(name) for name in topology.all_principals()]

    def plan_actions(self, topology: Topology, state: Snapshot) -> list[Action]:
        if not self.settings.enable_principal_management:
            logger.debug("Principal management disabled; skipping service accounts")
            return []
        return reconcile(
            ReconcileSpec(
                kind=self.kind,
                desired=lambda: self.desired_accounts(topology),
                recorded=lambda: state.accounts,
                live=self.provider.list_service_accounts,
                matches=lambda account: self.resource_filter.matches_principal(account.name),
                key=lambda account: account.name,
                create=lambda items: [CreateAccounts(self.provider, items)],
                delete=lambda items: [ClearAccounts(self.provider, items)],
                fetch_from_cluster=self.settings.fetch_state_from_cluster,
                verify_remote_state=self.settings.verify_remote_state,
                allow_delete=self.settings.allow_delete_principals,
            )
        )
