"""Wire settings, state, audit and reconcilers into one reconciliation pass."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from topology_engine.audit import build_auditor
from topology_engine.audit.auditor import Auditor
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.interfaces import (
    AccessControlProvider,
    ArtefactClient,
    ClusterAdmin,
    PrincipalProvider,
    SchemaRegistryManager,
)
from topology_engine.models.topology import Topology
from topology_engine.plan import ExecutionPlan
from topology_engine.reconcile.accounts import AccountsReconciler
from topology_engine.reconcile.artefacts import ArtefactReconciler
from topology_engine.reconcile.base import Reconciler
from topology_engine.reconcile.bindings import BindingsReconciler
from topology_engine.reconcile.topics import TopicReconciler
from topology_engine.registry import Factory, Registry
from topology_engine.state import build_state_store
from topology_engine.state.store import StateStore

logger = logging.getLogger(__name__)

# Populated by the integrating application with its wire-protocol clients.
ACCESS_CONTROL_PROVIDERS: Registry[AccessControlProvider] = Registry("access control provider")


def register_access_control_provider(kind: str, factory: Factory[AccessControlProvider]) -> None:
    """Make *kind* selectable through ``TOPOLOGY_ACCESS_CONTROL_PROVIDER``."""
    ACCESS_CONTROL_PROVIDERS.register(kind, factory)


class ReconciliationEngine:
    """Run reconciliation passes against one cluster.

    Collaborators that are not supplied disable the reconcilers that need
    them.  When *access_control* is omitted it is resolved by name from
    :data:`ACCESS_CONTROL_PROVIDERS`.

    Parameters
    ----------
    settings:
        Engine settings.
    admin:
        Cluster administration client.
    access_control, principals, schema_registry:
        Optional collaborators.
    connect_clients, ksql_clients:
        Artefact clients keyed by server label.
    store, auditor:
        Built from *settings* when omitted.
    root_path:
        Directory that artefact and schema file paths are relative to.
    output:
        Stream action summaries are printed to.
    """

    def __init__(
        self,
        settings: Settings,
        admin: ClusterAdmin,
        access_control: AccessControlProvider | None = None,
        principals: PrincipalProvider | None = None,
        schema_registry: SchemaRegistryManager | None = None,
        connect_clients: Mapping[str, ArtefactClient] | None = None,
        ksql_clients: Mapping[str, ArtefactClient] | None = None,
        store: StateStore | None = None,
        auditor: Auditor | None = None,
        root_path: Path | str = ".",
        output: TextIO | None = None,
    ) -> None:
        self.settings = settings
        self.admin = admin
        self.access_control = access_control
        if self.access_control is None and settings.access_control_provider in ACCESS_CONTROL_PROVIDERS:
            self.access_control = ACCESS_CONTROL_PROVIDERS.create(settings.access_control_provider, settings)
        self.principals = principals
        self.schema_registry = schema_registry
        self.connect_clients = dict(connect_clients or {})
        self.ksql_clients = dict(ksql_clients or {})
        self.store = store if store is not None else build_state_store(settings)
        self.auditor = auditor if auditor is not None else build_auditor(settings)
        self.root_path = Path(root_path)
        self.output = output
        self.resource_filter = ResourceFilter.from_settings(settings)

    def reconcilers(self) -> list[Reconciler]:
        """Reconcilers in planning order: accounts, topics, bindings, connectors, ksql."""
        reconcilers: list[Reconciler] = []
        if self.principals is not None:
            reconcilers.append(AccountsReconciler(self.settings, self.principals, self.resource_filter))
        reconcilers.append(
            TopicReconciler(self.settings, self.admin, self.schema_registry, self.root_path, self.resource_filter)
        )
        if self.access_control is not None:
            reconcilers.append(BindingsReconciler(self.settings, self.access_control, self.resource_filter))
        else:
            logger.warning("No access control provider configured; bindings are not reconciled")
        if self.connect_clients:
            reconcilers.append(
                ArtefactReconciler.for_connectors(
                    self.settings, self.connect_clients, self.root_path, self.resource_filter
                )
            )
        if self.ksql_clients:
            reconcilers.append(
                ArtefactReconciler.for_ksql(self.settings, self.ksql_clients, self.root_path, self.resource_filter)
            )
        return reconcilers

    def build_plan(self, topology: Topology) -> ExecutionPlan:
        """Load the prior state and collect every reconciler's actions.

        Creates and updates are queued in reconciler order.  Deletes follow
        them, in reverse reconciler order.

        Raises
        ------
        DivergenceError
            If the recorded state no longer matches the cluster.  The store
            is closed and nothing is executed.
        """
        self.admin.healthcheck()
        plan = ExecutionPlan.init(self.store, self.output, self.auditor)
        try:
            deletes = [reconciler.update_plan(plan, topology) for reconciler in self.reconcilers()]
            # Dependants go first: ksql, connectors, bindings, topics, accounts.
            for actions in reversed(deletes):
                for action in actions:
                    plan.add(action)
        except Exception:
            plan.close()
            raise
        return plan

    def run(self, topology: Topology, dry_run: bool = False) -> ExecutionPlan:
        """Run one reconciliation pass and return the executed plan."""
        logger.info(
            "Starting reconciliation pass for instance %s%s",
            self.settings.instance_id,
            " (dry run)" if dry_run else "",
        )
        try:
            plan = self.build_plan(topology)
            plan.run(dry_run=dry_run)
        finally:
            self.auditor.close()
        logger.info("Reconciliation pass finished with %d action(s)", len(plan))
        return plan
