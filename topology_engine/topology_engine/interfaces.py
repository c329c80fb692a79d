"""Structural interfaces of the collaborators a reconciliation pass drives.

The wire-protocol clients for the cluster, schema registry, connector
runtime, stream engine and cloud APIs live outside this package.  They are
**not** required to subclass these protocols; matching method signatures is
enough (duck typing).  Methods may raise
:class:`~topology_engine.errors.TransientIOError` (or its
:class:`~topology_engine.errors.OverloadError` subclass) on network failure.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from topology_engine.models.account import ServiceAccount
from topology_engine.models.artefact import Artefact
from topology_engine.models.binding import Binding
from topology_engine.models.topic import ConfigEntry, TopicSpec

if TYPE_CHECKING:
    from topology_engine.config import Settings
    from topology_engine.state.snapshot import Snapshot
    from topology_engine.topics.config_plan import TopicConfigUpdatePlan


class OpenMode(str, Enum):
    """How a backend should open its storage.

    ``TRUNCATE`` prepares for a full overwrite by the next ``save``.  It never
    removes the persisted document itself, so a failed save leaves the
    previous snapshot readable.
    """

    TRUNCATE = "truncate"
    APPEND = "append"


class ClusterAdmin(Protocol):
    """Administrative operations against the message broker."""

    def create_topic(self, topic: TopicSpec) -> None:
        """Create *topic*.  Raises ``ResourceConflictError`` if it already exists."""
        ...

    def delete_topics(self, names: Sequence[str]) -> None: ...

    def increase_partitions(self, name: str, count: int) -> None: ...

    def alter_topic_config(self, plan: TopicConfigUpdatePlan) -> None:
        """Incrementally apply the new, updated and deleted configs of *plan*."""
        ...

    def list_topics(self) -> set[str]: ...

    def describe_topic_config(self, name: str) -> list[ConfigEntry]: ...

    def partition_count(self, name: str) -> int: ...

    def healthcheck(self) -> None: ...


class AccessControlProvider(Protocol):
    """Creates, removes and lists access-control bindings."""

    def create_bindings(self, bindings: Collection[Binding]) -> None: ...

    def clear_bindings(self, bindings: Collection[Binding]) -> None: ...

    def list_acls(self) -> Mapping[str, list[Binding]]:
        """Return the live bindings grouped by resource name."""
        ...


class PrincipalProvider(Protocol):
    """Creates, deletes and lists service accounts."""

    def create_service_account(self, name: str, description: str) -> ServiceAccount:
        """Create the account and return it with its cluster-assigned id."""
        ...

    def delete_service_account(self, account: ServiceAccount) -> None: ...

    def list_service_accounts(self) -> set[ServiceAccount]: ...


class ArtefactClient(Protocol):
    """Client for one server hosting artefacts (connector runtime, stream engine)."""

    def add(self, name: str, content: str) -> None: ...

    def update(self, name: str, content: str) -> None: ...

    def delete(self, name: str, kind: str | None = None) -> None: ...

    def get_cluster_state(self) -> list[Artefact]:
        """Return the hosted artefacts, each with its content hash when known."""
        ...


class SchemaRegistryManager(Protocol):
    """Schema registry operations used for subject lifecycle."""

    def register(self, subject: str, schema: str, schema_type: str) -> int: ...

    def get_id(self, subject: str, schema: str, schema_type: str) -> int | None:
        """Return the id of *schema* under *subject*, or ``None`` if not registered."""
        ...

    def get_compatibility(self, subject: str) -> str | None: ...

    def set_compatibility(self, subject: str, compatibility: str) -> None: ...


class Backend(Protocol):
    """Persistence SPI for the state snapshot.

    One logical key per reconciler instance; ``save`` replaces it in a
    single write (last write wins).  The previous value stays readable until
    that write succeeds.
    """

    def configure(self, settings: Settings) -> None: ...

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None: ...

    def close(self) -> None: ...

    def save(self, snapshot: Snapshot) -> None: ...

    def load(self) -> Snapshot:
        """Return the persisted snapshot, or an empty one if none exists.

        Raises ``StateStoreError`` if the storage is unreachable or corrupt.
        """
        ...


class Appender(Protocol):
    """Destination of audit records."""

    def init(self) -> None: ...

    def log(self, message: str) -> None: ...

    def close(self) -> None: ...
