"""Local file state backend."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from topology_engine.config import Settings
from topology_engine.errors import StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


class FileBackend:
    """Persist the snapshot as a JSON document at ``<state_dir>/<state_file_name>``.

    Opening never touches existing bytes.  :meth:`save` writes a sibling
    temporary file and renames it over the document, so readers see either
    the previous snapshot or the new one.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise StateStoreError("File backend used before configure()")
        return self._path

    def configure(self, settings: Settings) -> None:
        self._path = Path(settings.state_dir) / settings.state_file_name

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StateStoreError(f"Cannot open state file {path}: {exc}") from exc

    def close(self) -> None:
        """Nothing is held open between calls."""

    def save(self, snapshot: Snapshot) -> None:
        path = self.path
        staging = path.with_name(f"{path.name}.tmp")
        try:
            staging.write_text(serialize_snapshot(snapshot), encoding="utf-8")
            os.replace(staging, path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise StateStoreError(f"Cannot write state file {path}: {exc}") from exc
        logger.debug("Wrote state to %s", path)

    def load(self) -> Snapshot:
        path = self.path
        if not path.exists():
            logger.debug("No state file at %s; starting empty", path)
            return Snapshot()
        try:
            document = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StateStoreError(f"Cannot read state file {path}: {exc}") from exc
        return deserialize_snapshot(document)
