"""Audit appenders: destinations for per-resource audit records."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

from confluent_kafka import KafkaException, Producer

logger = logging.getLogger(__name__)


class StdoutAppender:
    """Write each audit record to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def init(self) -> None:
        """Nothing to open."""

    def log(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(message + "\n")
        stream.flush()

    def close(self) -> None:
        """The stream is owned by the caller."""


class FileAppender:
    """Append audit records as JSON lines to a local file.

    Parameters
    ----------
    path:
        Path to the JSON lines file.  Parent directories are created on
        :meth:`init`.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._handle: TextIO | None = None

    def _open(self) -> TextIO:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        return self._path.open("a", encoding="utf-8")

    def init(self) -> None:
        self._handle = self._open()

    def log(self, message: str) -> None:
        handle = self._handle
        if handle is None:
            handle = self._handle = self._open()
        # One record per line.
        handle.write(json.dumps(json.loads(message), sort_keys=True, ensure_ascii=False) + "\n")
        handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        logger.debug("Closed audit file %s", self._path)


class KafkaAppender:
    """Produce each audit record to the audit topic."""

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        producer_factory: Callable[[dict[str, Any]], Any] = Producer,
    ) -> None:
        self._bootstrap_servers = bootstrap_servers
        self._topic = topic
        self._producer_factory = producer_factory
        self._producer: Any = None

    def init(self) -> None:
        self._producer = self._producer_factory({"bootstrap.servers": self._bootstrap_servers})

    def log(self, message: str) -> None:
        if self._producer is None:
            self.init()
        try:
            self._producer.produce(self._topic, value=message.encode("utf-8"))
            self._producer.poll(0)
        except (KafkaException, BufferError) as exc:
            logger.warning("Dropping audit record for topic %s: %s", self._topic, exc)

    def close(self) -> None:
        if self._producer is not None:
            remaining = self._producer.flush(10.0)
            if remaining:
                logger.warning("%d audit record(s) undelivered to topic %s", remaining, self._topic)
            self._producer = None
