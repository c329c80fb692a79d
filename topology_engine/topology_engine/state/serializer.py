"""Deterministic serialization for state snapshots.

Identical snapshots always produce byte-identical documents: keys are
sorted and every collection is emitted in a stable order, so a rewritten
state file only changes when its content does.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from topology_engine.errors import StateStoreError
from topology_engine.state.snapshot import Snapshot


def _sort_key(item: Any) -> str:
    return json.dumps(item, sort_keys=True, ensure_ascii=False)


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, list[Any]]:
    """Return the JSON-compatible document for *snapshot* with sorted collections."""
    raw = snapshot.model_dump(mode="json")
    return {name: sorted(items, key=_sort_key) for name, items in raw.items()}


def serialize_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to a deterministic JSON string.

    Parameters
    ----------
    snapshot:
        The snapshot to serialize.

    Returns
    -------
    str
        A pretty-printed JSON string with sorted keys and collections.
    """
    return json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True, ensure_ascii=False)


def deserialize_snapshot(document: str | bytes | None) -> Snapshot:
    """Deserialize a document produced by :func:`serialize_snapshot`.

    A missing or blank document is an empty snapshot.

    Raises
    ------
    StateStoreError
        If the document is not valid JSON or does not match the snapshot
        shape.
    """
    if document is None:
        return Snapshot()
    if isinstance(document, bytes):
        document = document.decode("utf-8")
    if not document.strip():
        return Snapshot()
    try:
        return Snapshot.model_validate_json(document)
    except ValidationError as exc:
        raise StateStoreError(f"Corrupt state document: {exc.error_count()} validation error(s): {exc}") from exc
