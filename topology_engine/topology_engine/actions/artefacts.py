"""Create, sync and delete hosted artefacts (connectors, streams, tables, vars)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from topology_engine.actions.base import BaseAction
from topology_engine.errors import ConfigurationError
from topology_engine.interfaces import ArtefactClient
from topology_engine.models.artefact import Artefact
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


def read_artefact_content(artefact: Artefact, root_path: Path | str = ".") -> str:
    """Return the definition of *artefact*: its inline content, or its file under *root_path*.

    Raises
    ------
    ConfigurationError
        If the definition file cannot be read.
    """
    if artefact.content is not None:
        return artefact.content
    path = Path(root_path) / artefact.path
    logger.debug("Reading artefact content from %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read definition of {artefact} at {path}: {exc}") from exc


class _ArtefactAction(BaseAction):
    verb = ""

    def __init__(self, client: ArtefactClient, artefact: Artefact, root_path: Path | str = ".") -> None:
        self._client = client
        self._root_path = Path(root_path)
        self.artefact = artefact

    def _content(self) -> str:
        return read_artefact_content(self.artefact, self._root_path)

    def props(self) -> dict[str, Any]:
        return {
            "Operation": self.name,
            "Artefact": self.artefact.path or self.artefact.name,
            "Kind": self.artefact.kind.value,
            "Server": self.artefact.server_label,
        }

    def detailed_props(self) -> list[dict[str, Any]]:
        return [
            {
                "resource_name": self.resource_name(self.verb, self.artefact.server_label, self.artefact.name),
                "operation": self.name,
                "artefact": self.artefact.path or self.artefact.name,
                "kind": self.artefact.kind.value,
            }
        ]


class CreateArtefact(_ArtefactAction):
    verb = "create.artefact"

    def run(self) -> None:
        logger.info("Creating %s", self.artefact)
        self._client.add(self.artefact.name, self._content())

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_artefacts([self.artefact])


class SyncArtefact(_ArtefactAction):
    """Push the current definition of an artefact whose content drifted."""

    verb = "sync.artefact"

    def run(self) -> None:
        logger.info("Updating %s", self.artefact)
        self._client.update(self.artefact.name, self._content())

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.replace_artefact(self.artefact)


class DeleteArtefact(_ArtefactAction):
    verb = "delete.artefact"
    deletes = True

    def run(self) -> None:
        kind = self.artefact.delete_endpoint_kind
        logger.info("Deleting %s", self.artefact)
        if kind is None:
            self._client.delete(self.artefact.name)
        else:
            self._client.delete(self.artefact.name, kind)

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.remove_artefacts([self.artefact])
