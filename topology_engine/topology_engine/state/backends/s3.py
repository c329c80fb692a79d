"""Object-storage state backend (S3 or any S3-compatible endpoint)."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from topology_engine.config import Settings
from topology_engine.errors import ConfigurationError, OverloadError, StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.retry import RetryConfig, retry_with_backoff
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})
_THROTTLE_CODES = frozenset({"SlowDown", "Throttling", "ThrottlingException", "RequestLimitExceeded", "503"})


def _translate(exc: ClientError, action: str, location: str) -> Exception:
    code = exc.response.get("Error", {}).get("Code", "")
    if code in _THROTTLE_CODES:
        return OverloadError(f"S3 throttled {action} on {location}: {code}")
    return StateStoreError(f"S3 {action} failed on {location}: {code or exc}")


class S3Backend:
    """Persist the snapshot as a single object ``<s3_prefix><state_file_name>``.

    Parameters
    ----------
    client:
        Optional pre-built S3 client.  When omitted, one is created with
        ``boto3.client`` from the configured region and endpoint.
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client
        self._bucket: str | None = None
        self._key = ""
        self._retry = RetryConfig()

    def configure(self, settings: Settings) -> None:
        if not settings.s3_bucket:
            raise ConfigurationError("TOPOLOGY_S3_BUCKET is required for the s3 state backend")
        self._bucket = settings.s3_bucket
        self._key = f"{settings.s3_prefix}{settings.state_file_name}"
        self._retry = RetryConfig.from_settings(settings)
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
            )

    @property
    def location(self) -> str:
        return f"s3://{self._bucket}/{self._key}"

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        """The object is overwritten on save; nothing to open."""
        if self._bucket is None:
            raise StateStoreError("S3 backend used before configure()")

    def close(self) -> None:
        """The client holds no per-pass resources."""

    def save(self, snapshot: Snapshot) -> None:
        body = serialize_snapshot(snapshot).encode("utf-8")

        def _put() -> None:
            try:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=self._key,
                    Body=body,
                    ContentType="application/json",
                )
            except ClientError as exc:
                raise _translate(exc, "put", self.location) from exc
            except BotoCoreError as exc:
                raise StateStoreError(f"S3 put failed on {self.location}: {exc}") from exc

        retry_with_backoff(_put, self._retry, description=f"S3 put {self.location}")
        logger.debug("Wrote state to %s", self.location)

    def load(self) -> Snapshot:
        def _get() -> bytes | None:
            try:
                response = self._client.get_object(Bucket=self._bucket, Key=self._key)
            except ClientError as exc:
                code = exc.response.get("Error", {}).get("Code", "")
                if code in _MISSING_CODES:
                    return None
                raise _translate(exc, "get", self.location) from exc
            except BotoCoreError as exc:
                raise StateStoreError(f"S3 get failed on {self.location}: {exc}") from exc
            return response["Body"].read()

        document = retry_with_backoff(_get, self._retry, description=f"S3 get {self.location}")
        if document is None:
            logger.debug("No state object at %s; starting empty", self.location)
        return deserialize_snapshot(document)
