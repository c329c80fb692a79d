"""Durable snapshot of applied resources and its storage backends."""

from topology_engine.config import Settings
from topology_engine.state.backends import build_backend, register_backend
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot
from topology_engine.state.store import StateStore


def build_state_store(settings: Settings) -> StateStore:
    """Return a :class:`StateStore` over the backend selected by *settings*."""
    return StateStore(build_backend(settings))


__all__ = [
    "Snapshot",
    "StateStore",
    "build_backend",
    "build_state_store",
    "deserialize_snapshot",
    "register_backend",
    "serialize_snapshot",
]
