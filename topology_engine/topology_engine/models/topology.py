"""Desired-state model.

The document parser lives outside this package; it produces a
:class:`Topology` (usually via ``Topology.model_validate``).  Reconcilers
only ever read the flattened views exposed here.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from topology_engine.models.artefact import Artefact, ArtefactKind
from topology_engine.models.binding import Binding
from topology_engine.models.topic import TopicSpec


class Project(BaseModel):
    """One team's namespace of topics, principals and artefacts."""

    name: str
    topics: list[TopicSpec] = Field(default_factory=list)
    bindings: list[Binding] = Field(default_factory=list)
    principals: list[str] = Field(default_factory=list)
    connectors: list[Artefact] = Field(default_factory=list)
    streams: list[Artefact] = Field(default_factory=list)
    tables: list[Artefact] = Field(default_factory=list)
    session_vars: dict[str, str] = Field(default_factory=dict)

    def artefacts(self) -> list[Artefact]:
        found: list[Artefact] = [*self.connectors, *self.streams, *self.tables]
        if self.session_vars:
            found.append(Artefact.session_vars(self.session_vars))
        return found


class Topology(BaseModel):
    """Root of the desired state."""

    context: str = ""
    projects: list[Project] = Field(default_factory=list)
    platform_bindings: list[Binding] = Field(default_factory=list)
    special_topics: list[TopicSpec] = Field(default_factory=list)

    def all_topics(self) -> list[TopicSpec]:
        topics = [topic for project in self.projects for topic in project.topics]
        return [*topics, *self.special_topics]

    def all_bindings(self) -> list[Binding]:
        bindings = [binding for project in self.projects for binding in project.bindings]
        return [*bindings, *self.platform_bindings]

    def all_principals(self) -> list[str]:
        """Principals declared directly or referenced by any binding, first-seen order."""
        seen: dict[str, None] = {}
        for project in self.projects:
            for principal in project.principals:
                seen.setdefault(principal, None)
        for binding in self.all_bindings():
            seen.setdefault(binding.principal, None)
        return list(seen)

    def artefacts(self, kinds: Iterable[ArtefactKind]) -> list[Artefact]:
        wanted = frozenset(kinds)
        return [
            artefact
            for project in self.projects
            for artefact in project.artefacts()
            if artefact.kind in wanted
        ]
