"""Managed-prefix ownership predicates.

A run only creates, modifies or deletes resources inside the namespaces it
has been told to manage.  For each resource kind an empty prefix list means
"manage everything" (open mode).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from topology_engine.config import Settings
from topology_engine.models.artefact import Artefact
from topology_engine.models.binding import Binding

logger = logging.getLogger(__name__)

WILDCARD = "*"


def _matches_prefix(prefixes: Sequence[str], item: str, kind: str) -> bool:
    matches = not prefixes or any(item.startswith(prefix) for prefix in prefixes)
    logger.debug("%s %s matches %s with %s", kind, item, matches, list(prefixes))
    return matches


class ResourceFilter:
    """Decide whether a resource lies inside the managed namespaces."""

    def __init__(
        self,
        topic_prefixes: Sequence[str] = (),
        group_prefixes: Sequence[str] = (),
        subject_prefixes: Sequence[str] = (),
        service_account_prefixes: Sequence[str] = (),
        artefact_prefixes: Sequence[str] = (),
    ) -> None:
        self._topic_prefixes = tuple(topic_prefixes)
        self._group_prefixes = tuple(group_prefixes)
        self._subject_prefixes = tuple(subject_prefixes)
        self._service_account_prefixes = tuple(service_account_prefixes)
        self._artefact_prefixes = tuple(artefact_prefixes)

    @classmethod
    def from_settings(cls, settings: Settings) -> ResourceFilter:
        return cls(
            topic_prefixes=settings.topic_managed_prefixes,
            group_prefixes=settings.group_managed_prefixes,
            subject_prefixes=settings.subject_managed_prefixes,
            service_account_prefixes=settings.service_account_managed_prefixes,
            artefact_prefixes=settings.artefact_managed_prefixes,
        )

    def matches_topic(self, name: str) -> bool:
        return _matches_prefix(self._topic_prefixes, name, "Topic")

    def matches_group(self, name: str) -> bool:
        return _matches_prefix(self._group_prefixes, name, "Group")

    def matches_subject(self, name: str) -> bool:
        return _matches_prefix(self._subject_prefixes, name, "Subject")

    def matches_principal(self, principal: str) -> bool:
        return _matches_prefix(self._service_account_prefixes, principal, "Principal")

    def matches_artefact(self, artefact: Artefact) -> bool:
        return _matches_prefix(self._artefact_prefixes, artefact.name, "Artefact")

    def matches_binding(self, binding: Binding) -> bool:
        """Return True when *binding* is managed by this run.

        Principal prefixes take precedence: when configured, a binding must
        match them and, in addition, its resource-kind prefixes.  A wildcard
        resource is managed purely by principal.
        """
        if self._service_account_prefixes or binding.resource_name == WILDCARD:
            if binding.resource_name == WILDCARD:
                return self.matches_principal(binding.principal)
            return self.matches_principal(binding.principal) and self._matches_resource(binding)
        if self._topic_prefixes or self._group_prefixes or self._subject_prefixes:
            return self._matches_resource(binding)
        return True

    def _matches_resource(self, binding: Binding) -> bool:
        resource_type = binding.resource_type.upper()
        if resource_type == "TOPIC":
            return self.matches_topic(binding.resource_name)
        if resource_type == "SUBJECT":
            return self.matches_subject(binding.resource_name)
        if resource_type == "GROUP":
            return self.matches_group(binding.resource_name)
        return True
