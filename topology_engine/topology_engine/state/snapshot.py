"""The durable record of resources a previous pass applied.

A :class:`Snapshot` holds six deduplicated sets.  It is loaded once at the
start of a pass, mutated as actions execute and written back only after a
successful non-dry-run pass.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from topology_engine.models.account import ServiceAccount
from topology_engine.models.artefact import Artefact, ArtefactKind
from topology_engine.models.binding import Binding

# Snapshot collection each artefact kind is recorded in.  Session variables
# are re-applied every pass and never recorded.
ARTEFACT_COLLECTION: dict[ArtefactKind, str | None] = {
    ArtefactKind.CONNECTOR: "connectors",
    ArtefactKind.STREAM: "stream_artefacts",
    ArtefactKind.TABLE: "table_artefacts",
    ArtefactKind.VARS: None,
}


class Snapshot(BaseModel):
    """Six deduplicated sets of previously applied resources."""

    bindings: set[Binding] = Field(default_factory=set)
    accounts: set[ServiceAccount] = Field(default_factory=set)
    topics: set[str] = Field(default_factory=set)
    connectors: set[Artefact] = Field(default_factory=set)
    stream_artefacts: set[Artefact] = Field(default_factory=set)
    table_artefacts: set[Artefact] = Field(default_factory=set)

    # -- bindings --------------------------------------------------------

    def add_bindings(self, bindings: Iterable[Binding]) -> None:
        self.bindings.update(bindings)

    def remove_bindings(self, bindings: Iterable[Binding]) -> None:
        self.bindings.difference_update(bindings)

    # -- accounts --------------------------------------------------------

    def add_accounts(self, accounts: Iterable[ServiceAccount]) -> None:
        self.accounts.update(accounts)

    def remove_accounts(self, accounts: Iterable[ServiceAccount]) -> None:
        """Drop every recorded account sharing a name with one of *accounts*."""
        names = {account.name for account in accounts}
        self.accounts = {account for account in self.accounts if account.name not in names}

    # -- topics ----------------------------------------------------------

    def add_topics(self, names: Iterable[str]) -> None:
        self.topics.update(names)

    def remove_topics(self, names: Iterable[str]) -> None:
        self.topics.difference_update(names)

    # -- artefacts -------------------------------------------------------

    def artefacts(self, kind: ArtefactKind) -> set[Artefact]:
        """Return the recorded artefacts of *kind* (empty for unrecorded kinds)."""
        collection = ARTEFACT_COLLECTION[kind]
        if collection is None:
            return set()
        return {artefact for artefact in getattr(self, collection) if artefact.kind == kind}

    def add_artefacts(self, artefacts: Iterable[Artefact]) -> None:
        for artefact in artefacts:
            target = self._collection_for(artefact)
            if target is not None:
                target.add(artefact)

    def replace_artefact(self, artefact: Artefact) -> None:
        """Record the new version of *artefact*, dropping any version with the same identity."""
        target = self._collection_for(artefact)
        if target is None:
            return
        target.discard(artefact)
        target.add(artefact)

    def remove_artefacts(self, artefacts: Iterable[Artefact]) -> None:
        for artefact in artefacts:
            target = self._collection_for(artefact)
            if target is not None:
                target.discard(artefact)

    def _collection_for(self, artefact: Artefact) -> set[Artefact] | None:
        collection = ARTEFACT_COLLECTION[artefact.kind]
        return getattr(self, collection) if collection is not None else None

    # -- whole snapshot --------------------------------------------------

    def clear(self) -> None:
        self.bindings.clear()
        self.accounts.clear()
        self.topics.clear()
        self.connectors.clear()
        self.stream_artefacts.clear()
        self.table_artefacts.clear()

    def update(self, other: Snapshot) -> None:
        """Union every collection of *other* into this snapshot."""
        self.add_bindings(other.bindings)
        self.add_accounts(other.accounts)
        self.add_topics(other.topics)
        self.connectors.update(other.connectors)
        self.stream_artefacts.update(other.stream_artefacts)
        self.table_artefacts.update(other.table_artefacts)

    def size(self) -> int:
        """Total number of recorded resources across all collections."""
        return (
            len(self.bindings)
            + len(self.accounts)
            + len(self.topics)
            + len(self.connectors)
            + len(self.stream_artefacts)
            + len(self.table_artefacts)
        )

    def is_empty(self) -> bool:
        return self.size() == 0
