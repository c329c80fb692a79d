"""Artefact model: externally hosted objects managed alongside topics.

An artefact is a tagged union keyed by :class:`ArtefactKind`.  Everything
that depends on the kind (delete endpoint tag, deletion priority) is looked
up in the tables below by tag.
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArtefactKind(str, Enum):
    CONNECTOR = "CONNECTOR"
    STREAM = "STREAM"
    TABLE = "TABLE"
    VARS = "VARS"


# Lower deletes first: tables read from streams, streams read from topics
# fed by connectors.
DELETION_PRIORITY: dict[ArtefactKind, int] = {
    ArtefactKind.TABLE: 0,
    ArtefactKind.STREAM: 1,
    ArtefactKind.CONNECTOR: 2,
    ArtefactKind.VARS: 3,
}

# Kind tag passed to ``ArtefactClient.delete``; connectors use the plain endpoint.
DELETE_ENDPOINT_KIND: dict[ArtefactKind, str | None] = {
    ArtefactKind.CONNECTOR: None,
    ArtefactKind.STREAM: "STREAM",
    ArtefactKind.TABLE: "TABLE",
    ArtefactKind.VARS: "VARS",
}

KSQL_KINDS = frozenset({ArtefactKind.STREAM, ArtefactKind.TABLE, ArtefactKind.VARS})
CONNECT_KINDS = frozenset({ArtefactKind.CONNECTOR})

SESSION_VARS_NAME = "SESSION_VARS"


def content_hash(content: str) -> str:
    """Return a stable hash for artefact *content*.

    JSON documents are canonicalised first so that key order and
    whitespace do not register as drift.
    """
    try:
        canonical = json.dumps(json.loads(content), sort_keys=True, separators=(",", ":"))
    except ValueError:
        canonical = content.strip()
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class Artefact(BaseModel):
    """A connector configuration, stream, table or set of session variables.

    Identity is ``(server_label, name)``: two artefacts with the same
    identity but different ``hash`` are the same resource in different
    versions.
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtefactKind
    path: str = Field(default="", description="File path of the definition, relative to the topology root.")
    server_label: str = Field(default="default", description="Label of the server that hosts the artefact.")
    name: str = Field(..., min_length=1)
    hash: str | None = Field(default=None, description="Content hash used for drift detection.")
    content: str | None = Field(
        default=None,
        description="Inline definition, used instead of ``path`` (session variables).",
    )

    @classmethod
    def session_vars(cls, variables: dict[str, str], server_label: str = "default") -> Artefact:
        content = json.dumps(variables, sort_keys=True)
        return cls(
            kind=ArtefactKind.VARS,
            server_label=server_label,
            name=SESSION_VARS_NAME,
            content=content,
            hash=content_hash(content),
        )

    @property
    def identity(self) -> tuple[str, str]:
        return (self.server_label, self.name)

    @property
    def deletion_priority(self) -> int:
        return DELETION_PRIORITY[self.kind]

    @property
    def delete_endpoint_kind(self) -> str | None:
        return DELETE_ENDPOINT_KIND[self.kind]

    def with_hash(self, value: str | None) -> Artefact:
        return self.model_copy(update={"hash": value})

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Artefact):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __str__(self) -> str:
        return f"{self.kind.value.lower()} {self.name}@{self.server_label}"
