"""Create and delete service-account principals."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from topology_engine.actions.base import BaseAction
from topology_engine.interfaces import PrincipalProvider
from topology_engine.models.account import ServiceAccount
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


class _AccountsAction(BaseAction):
    verb = ""

    def __init__(self, provider: PrincipalProvider, accounts: Iterable[ServiceAccount]) -> None:
        self._provider = provider
        self.accounts: list[ServiceAccount] = sorted(set(accounts), key=lambda a: a.name)

    def props(self) -> dict[str, Any]:
        return {
            "Operation": self.name,
            "Principals": [account.name for account in self.accounts],
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name(self.verb, account.name),
                "operation": self.name,
                "principal": account.name,
            }
            for account in self.accounts
        ]


class CreateAccounts(_AccountsAction):
    """Create every pending account; the outcome is the materialized accounts."""

    verb = "create.account"

    def run(self) -> list[ServiceAccount]:
        created: list[ServiceAccount] = []
        for account in self.accounts:
            remote = self._provider.create_service_account(account.name, account.description)
            created.append(account.materialize(remote.id, remote.resource_name))
            logger.info("Created service account %s with id %s", account.name, remote.id)
        return created

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_accounts(outcome or [])


class ClearAccounts(_AccountsAction):
    verb = "delete.account"
    deletes = True

    def run(self) -> None:
        for account in self.accounts:
            self._provider.delete_service_account(account)
            logger.info("Deleted service account %s", account)

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.remove_accounts(self.accounts)
