"""State backend registry.

Backends are selected by ``settings.state_backend``.  The built-in kinds
are imported lazily so a deployment only needs the client library of the
backend it uses; out-of-tree kinds are added with :func:`register_backend`.
"""

from __future__ import annotations

from topology_engine.config import BackendType, Settings
from topology_engine.interfaces import Backend
from topology_engine.registry import Factory, Registry

BACKENDS: Registry[Backend] = Registry("state backend")


def _file(settings: Settings) -> Backend:
    from topology_engine.state.backends.file import FileBackend

    return FileBackend()


def _s3(settings: Settings) -> Backend:
    from topology_engine.state.backends.s3 import S3Backend

    return S3Backend()


def _redis(settings: Settings) -> Backend:
    from topology_engine.state.backends.redis import RedisBackend

    return RedisBackend()


def _kafka(settings: Settings) -> Backend:
    from topology_engine.state.backends.kafka import KafkaBackend

    return KafkaBackend()


def _sql(settings: Settings) -> Backend:
    from topology_engine.state.backends.sql import SqlBackend

    return SqlBackend()


BACKENDS.register(BackendType.FILE, _file)
BACKENDS.register(BackendType.S3, _s3)
BACKENDS.register(BackendType.REDIS, _redis)
BACKENDS.register(BackendType.KAFKA, _kafka)
BACKENDS.register(BackendType.SQL, _sql)


def register_backend(kind: str, factory: Factory[Backend]) -> None:
    """Make *kind* selectable through ``TOPOLOGY_STATE_BACKEND``."""
    BACKENDS.register(kind, factory)


def build_backend(settings: Settings) -> Backend:
    """Create the configured backend and apply *settings* to it.

    Raises
    ------
    ConfigurationError
        If the backend kind is unknown or its settings are invalid.
    """
    backend = BACKENDS.create(settings.state_backend, settings)
    backend.configure(settings)
    return backend


__all__ = ["BACKENDS", "build_backend", "register_backend"]
