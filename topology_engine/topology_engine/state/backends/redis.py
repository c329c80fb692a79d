"""External-cache state backend on Redis."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import redis
from redis.exceptions import BusyLoadingError, RedisError

from topology_engine.config import Settings
from topology_engine.errors import OverloadError, StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.retry import RetryConfig, retry_with_backoff
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedisBackend:
    """Persist the snapshot under the single key ``redis_bucket``.

    Parameters
    ----------
    client:
        Optional pre-built ``redis.Redis`` client.
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client
        self._key = ""
        self._retry = RetryConfig()

    def configure(self, settings: Settings) -> None:
        self._key = settings.redis_bucket
        self._retry = RetryConfig.from_settings(settings)
        if self._client is None:
            self._client = redis.Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                decode_responses=True,
            )

    def _call(self, description: str, fn: Callable[[], T]) -> T:
        def _attempt() -> T:
            try:
                return fn()
            except BusyLoadingError as exc:
                raise OverloadError(f"Redis is loading its dataset during {description}: {exc}") from exc
            except RedisError as exc:
                raise StateStoreError(f"Redis {description} on key {self._key!r} failed: {exc}") from exc

        return retry_with_backoff(_attempt, self._retry, description=f"Redis {description}")

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        """Check the connection.  ``SET`` in :meth:`save` overwrites the key, so no mode clears it."""
        self._call("ping", self._client.ping)

    def close(self) -> None:
        """The connection pool is reused across passes."""

    def save(self, snapshot: Snapshot) -> None:
        document = serialize_snapshot(snapshot)
        self._call("set", lambda: self._client.set(self._key, document))
        logger.debug("Wrote state to redis key %s", self._key)

    def load(self) -> Snapshot:
        document = self._call("get", lambda: self._client.get(self._key))
        if document is None:
            logger.debug("No state at redis key %s; starting empty", self._key)
        return deserialize_snapshot(document)
