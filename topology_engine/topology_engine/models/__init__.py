"""Domain models for desired and recorded cluster resources."""

from topology_engine.models.account import MANAGED_BY, PENDING_ID, ServiceAccount
from topology_engine.models.artefact import (
    CONNECT_KINDS,
    KSQL_KINDS,
    Artefact,
    ArtefactKind,
    content_hash,
)
from topology_engine.models.binding import Binding
from topology_engine.models.topic import (
    ConfigEntry,
    ConfigSource,
    Subject,
    SubjectKind,
    SubjectNameStrategy,
    TopicSpec,
)
from topology_engine.models.topology import Project, Topology

__all__ = [
    "CONNECT_KINDS",
    "KSQL_KINDS",
    "MANAGED_BY",
    "PENDING_ID",
    "Artefact",
    "ArtefactKind",
    "Binding",
    "ConfigEntry",
    "ConfigSource",
    "Project",
    "ServiceAccount",
    "Subject",
    "SubjectKind",
    "SubjectNameStrategy",
    "TopicSpec",
    "Topology",
    "content_hash",
]
