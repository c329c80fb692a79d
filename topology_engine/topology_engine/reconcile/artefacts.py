"""Artefact reconciliation for connector runtimes and stream engines.

Each artefact names the server it lives on (``server_label``); the
reconciler holds one :class:`~topology_engine.interfaces.ArtefactClient`
per label.  Deletions run dependents first: tables, then streams, then
connectors, then session variables, and within a kind in the reverse of the
order the artefacts were discovered.  The snapshot keeps no discovery order,
so artefacts read from it are discovered in ``(server_label, name)`` order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from topology_engine.actions.artefacts import CreateArtefact, DeleteArtefact, SyncArtefact, read_artefact_content
from topology_engine.actions.base import Action
from topology_engine.config import Settings
from topology_engine.filters import ResourceFilter
from topology_engine.interfaces import ArtefactClient
from topology_engine.models.artefact import CONNECT_KINDS, KSQL_KINDS, Artefact, ArtefactKind, content_hash
from topology_engine.models.topology import Topology
from topology_engine.reconcile.base import Reconciler
from topology_engine.reconcile.diff import ReconcileSpec, reconcile
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


def deletion_order(artefacts: Iterable[Artefact]) -> list[Artefact]:
    """Order *artefacts* for deletion: by kind priority, then reverse discovery order."""
    indexed = list(enumerate(artefacts))
    indexed.sort(key=lambda pair: (pair[1].deletion_priority, -pair[0]))
    return [artefact for _, artefact in indexed]


def _hash_changed(desired: Artefact, actual: Artefact) -> bool:
    return actual.hash is not None and desired.hash != actual.hash


class ArtefactReconciler(Reconciler):
    """Converge the artefacts of *kinds* across the servers in *clients*.

    Parameters
    ----------
    settings:
        Engine settings.
    clients:
        Artefact client per server label.
    kinds:
        Artefact kinds this reconciler owns.
    allow_delete:
        Whether stale artefacts are deleted.
    root_path:
        Directory artefact definition paths are relative to.
    """

    def __init__(
        self,
        settings: Settings,
        clients: Mapping[str, ArtefactClient],
        kinds: Iterable[ArtefactKind],
        allow_delete: bool,
        root_path: Path | str = ".",
        resource_filter: ResourceFilter | None = None,
        kind: str = "artefact",
    ) -> None:
        super().__init__(settings, resource_filter)
        self.clients = dict(clients)
        self.kinds = frozenset(kinds)
        self.allow_delete = allow_delete
        self.root_path = Path(root_path)
        self.kind = kind

    @classmethod
    def for_connectors(
        cls,
        settings: Settings,
        clients: Mapping[str, ArtefactClient],
        root_path: Path | str = ".",
        resource_filter: ResourceFilter | None = None,
    ) -> ArtefactReconciler:
        return cls(
            settings,
            clients,
            CONNECT_KINDS,
            settings.allow_delete_connect_artefacts,
            root_path,
            resource_filter,
            kind="connector",
        )

    @classmethod
    def for_ksql(
        cls,
        settings: Settings,
        clients: Mapping[str, ArtefactClient],
        root_path: Path | str = ".",
        resource_filter: ResourceFilter | None = None,
    ) -> ArtefactReconciler:
        return cls(
            settings,
            clients,
            KSQL_KINDS,
            settings.allow_delete_ksql_artefacts,
            root_path,
            resource_filter,
            kind="ksql artefact",
        )

    # ------------------------------------------------------------------
    # State sources
    # ------------------------------------------------------------------

    def _has_client(self, artefact: Artefact) -> bool:
        if artefact.server_label in self.clients:
            return True
        logger.warning("No client configured for server %r; skipping %s", artefact.server_label, artefact)
        return False

    def desired_artefacts(self, topology: Topology) -> list[Artefact]:
        """Desired artefacts with a client, each carrying its content hash."""
        desired = []
        for artefact in topology.artefacts(self.kinds):
            if not self._has_client(artefact):
                continue
            if artefact.hash is None:
                artefact = artefact.with_hash(content_hash(read_artefact_content(artefact, self.root_path)))
            desired.append(artefact)
        return desired

    def live_artefacts(self) -> list[Artefact]:
        live = []
        for label in sorted(self.clients):
            for artefact in self.clients[label].get_cluster_state():
                if artefact.kind in self.kinds:
                    live.append(artefact.model_copy(update={"server_label": label}))
        return live

    def recorded_artefacts(self, state: Snapshot) -> list[Artefact]:
        """Recorded artefacts of this reconciler's kinds, sorted by ``(server_label, name)``."""
        recorded = [artefact for kind in self.kinds for artefact in state.artefacts(kind)]
        return sorted(recorded, key=lambda artefact: (artefact.server_label, artefact.name))

    # ------------------------------------------------------------------
    # Action construction
    # ------------------------------------------------------------------

    def _create(self, artefacts: list[Artefact]) -> list[Action]:
        return [CreateArtefact(self.clients[a.server_label], a, self.root_path) for a in artefacts]

    def _update(self, artefacts: list[Artefact]) -> list[Action]:
        return [SyncArtefact(self.clients[a.server_label], a, self.root_path) for a in artefacts]

    def _delete(self, artefacts: list[Artefact]) -> list[Action]:
        return [
            DeleteArtefact(self.clients[a.server_label], a, self.root_path)
            for a in deletion_order(artefacts)
            if self._has_client(a)
        ]

    def plan_actions(self, topology: Topology, state: Snapshot) -> list[Action]:
        if not self.clients:
            logger.debug("No %s clients configured; skipping", self.kind)
            return []
        return reconcile(
            ReconcileSpec(
                kind=self.kind,
                desired=lambda: self.desired_artefacts(topology),
                recorded=lambda: self.recorded_artefacts(state),
                live=self.live_artefacts,
                matches=self.resource_filter.matches_artefact,
                key=lambda artefact: artefact.identity,
                create=self._create,
                delete=self._delete,
                update=self._update,
                changed=_hash_changed,
                fetch_from_cluster=self.settings.fetch_state_from_cluster,
                verify_remote_state=self.settings.verify_remote_state,
                allow_delete=self.allow_delete,
            )
        )
