"""State store: the pass-level facade over a persistence backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType

from topology_engine.interfaces import Backend, OpenMode
from topology_engine.models.account import ServiceAccount
from topology_engine.models.artefact import Artefact
from topology_engine.models.binding import Binding
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


class StateStore:
    """Load, accumulate and persist the snapshot of applied resources.

    The store owns one in-memory :class:`Snapshot`.  Mutators are pure set
    unions; :meth:`flush_and_close` overwrites the persisted document with
    the in-memory one.

    Parameters
    ----------
    backend:
        A configured :class:`~topology_engine.interfaces.Backend`.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend
        self._snapshot = Snapshot()

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def load(self) -> Snapshot:
        """Open the backend and load the persisted snapshot.

        Returns a copy; the store keeps its own instance.

        Raises
        ------
        StateStoreError
            If the storage is unreachable or holds a corrupt document.
        """
        self._backend.create_or_open(OpenMode.APPEND)
        self._snapshot = self._backend.load()
        logger.debug("Loaded state with %d resource(s)", self._snapshot.size())
        return self._snapshot.model_copy(deep=True)

    def flush_and_close(self) -> None:
        """Replace the persisted snapshot with the in-memory one and close."""
        logger.debug("Persisting state with %d resource(s)", self._snapshot.size())
        self._backend.create_or_open(OpenMode.TRUNCATE)
        try:
            self._backend.save(self._snapshot)
        finally:
            self._backend.close()

    def close(self) -> None:
        self._backend.close()

    def reset(self) -> None:
        """Empty the in-memory snapshot.  The persisted one is untouched until flushed."""
        self._snapshot.clear()

    def clear(self) -> None:
        self.reset()

    def size(self) -> int:
        return self._snapshot.size()

    def add_bindings(self, bindings: Iterable[Binding]) -> None:
        self._snapshot.add_bindings(bindings)

    def add_accounts(self, accounts: Iterable[ServiceAccount]) -> None:
        self._snapshot.add_accounts(accounts)

    def add_topics(self, names: Iterable[str]) -> None:
        self._snapshot.add_topics(names)

    def add_connectors(self, connectors: Iterable[Artefact]) -> None:
        self._snapshot.connectors.update(connectors)

    def add_stream_artefacts(self, artefacts: Iterable[Artefact]) -> None:
        self._snapshot.stream_artefacts.update(artefacts)

    def add_table_artefacts(self, artefacts: Iterable[Artefact]) -> None:
        self._snapshot.table_artefacts.update(artefacts)

    def replace_with(self, snapshot: Snapshot) -> None:
        """Clear-then-write: make *snapshot* the in-memory state."""
        self.reset()
        self._snapshot.update(snapshot)

    def __enter__(self) -> StateStore:
        self._backend.create_or_open(OpenMode.APPEND)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._backend.close()
