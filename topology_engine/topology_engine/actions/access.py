"""Create and clear access-control bindings."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from topology_engine.actions.base import BaseAction
from topology_engine.interfaces import AccessControlProvider
from topology_engine.models.binding import Binding
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _sorted(bindings: Iterable[Binding]) -> list[Binding]:
    return sorted(bindings, key=lambda b: (b.resource_type, b.resource_name, b.principal, b.operation, b.pattern, b.host))


class _BindingsAction(BaseAction):
    verb = ""

    def __init__(self, provider: AccessControlProvider, bindings: Iterable[Binding]) -> None:
        self._provider = provider
        self.bindings: frozenset[Binding] = frozenset(bindings)

    def props(self) -> dict[str, Any]:
        return {
            "Operation": self.name,
            "Bindings": [binding.model_dump() for binding in _sorted(self.bindings)],
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name(
                    self.verb,
                    binding.resource_type,
                    binding.resource_name,
                    binding.principal,
                    binding.operation,
                    binding.pattern,
                ),
                "operation": self.name,
                "acl.resource_type": binding.resource_type,
                "acl.resource_name": binding.resource_name,
                "acl.principal": binding.principal,
                "acl.operation": binding.operation,
                "acl.pattern": binding.pattern,
                "acl.host": binding.host,
            }
            for binding in _sorted(self.bindings)
        ]


class CreateBindings(_BindingsAction):
    verb = "create.binding"

    def run(self) -> None:
        logger.debug("Creating %d binding(s)", len(self.bindings))
        self._provider.create_bindings(set(self.bindings))

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_bindings(self.bindings)


class ClearBindings(_BindingsAction):
    verb = "delete.binding"
    deletes = True

    def run(self) -> None:
        logger.debug("Clearing %d binding(s)", len(self.bindings))
        self._provider.clear_bindings(set(self.bindings))

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.remove_bindings(self.bindings)
