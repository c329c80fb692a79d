"""Broker-replicated state backend.

The snapshot lives in a compacted topic keyed by instance id.  A
background consumer thread tails the topic from the beginning and keeps the
latest value for this instance in a single-slot cell.  :meth:`load` blocks
until every partition has been read up to the high watermark observed at
start, so an absent value is a confirmed absence rather than a race.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from confluent_kafka import OFFSET_BEGINNING, Consumer, KafkaError, KafkaException, Producer, TopicPartition
from confluent_kafka.admin import AdminClient

from topology_engine.config import Settings
from topology_engine.errors import ConfigurationError, StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)

_POLL_TIMEOUT = 0.5
_METADATA_TIMEOUT = 10.0


class _LatestValue:
    """Single-slot cell holding the most recent snapshot document."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: bytes | None = None

    def set(self, value: bytes | None) -> None:
        with self._lock:
            self._value = value

    def get(self) -> bytes | None:
        with self._lock:
            return self._value


class KafkaBackend:
    """Persist the snapshot as the latest record for ``instance_id`` in a compacted topic.

    Parameters
    ----------
    consumer_factory, producer_factory, admin_factory:
        Callables taking a librdkafka configuration dict.  Default to the
        ``confluent_kafka`` client classes.
    """

    def __init__(
        self,
        consumer_factory: Callable[[dict[str, Any]], Any] = Consumer,
        producer_factory: Callable[[dict[str, Any]], Any] = Producer,
        admin_factory: Callable[[dict[str, Any]], Any] = AdminClient,
    ) -> None:
        self._consumer_factory = consumer_factory
        self._producer_factory = producer_factory
        self._admin_factory = admin_factory

        self._bootstrap_servers = ""
        self._topic = ""
        self._instance_id = ""
        self._load_timeout = 60.0
        self._partitions: list[int] = []

        self._latest = _LatestValue()
        self._loaded = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._failure: BaseException | None = None
        self._producer: Any = None

    def configure(self, settings: Settings) -> None:
        """Resolve the state topic.

        Raises
        ------
        ConfigurationError
            If the state topic does not exist.
        StateStoreError
            If the cluster cannot be reached.
        """
        self._bootstrap_servers = settings.kafka_bootstrap_servers
        self._topic = settings.kafka_state_topic
        self._instance_id = settings.instance_id
        self._load_timeout = settings.kafka_state_load_timeout

        admin = self._admin_factory({"bootstrap.servers": self._bootstrap_servers})
        try:
            metadata = admin.list_topics(topic=self._topic, timeout=_METADATA_TIMEOUT)
        except KafkaException as exc:
            raise StateStoreError(f"Cannot fetch metadata for state topic {self._topic}: {exc}") from exc

        topic_metadata = metadata.topics.get(self._topic)
        if topic_metadata is None or topic_metadata.error is not None or not topic_metadata.partitions:
            raise ConfigurationError(
                f"State topic {self._topic!r} does not exist; create it as a compacted topic "
                "before using the kafka state backend"
            )
        self._partitions = sorted(topic_metadata.partitions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        if self._producer is None:
            self._producer = self._producer_factory({"bootstrap.servers": self._bootstrap_servers})
        if mode == OpenMode.APPEND and self._thread is None:
            self._start()

    def _start(self) -> None:
        self._loaded.clear()
        self._stop_event.clear()
        self._failure = None
        self._thread = threading.Thread(
            target=self._consume_loop,
            name=f"state-loader-{self._instance_id}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Started state loader thread for topic %s", self._topic)

    def close(self) -> None:
        """Stop the loader thread, wait for it, then flush the producer."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self._load_timeout)
            if self._thread.is_alive():
                logger.warning("State loader thread for topic %s did not stop in time", self._topic)
            self._thread = None
        if self._producer is not None:
            self._producer.flush(_METADATA_TIMEOUT)

    # ------------------------------------------------------------------
    # Background consumer
    # ------------------------------------------------------------------

    def _consume_loop(self) -> None:
        consumer = None
        try:
            consumer = self._consumer_factory(
                {
                    "bootstrap.servers": self._bootstrap_servers,
                    "group.id": f"{self._instance_id}-state-loader",
                    "enable.auto.commit": False,
                    "auto.offset.reset": "earliest",
                }
            )
            assignment = [TopicPartition(self._topic, p, OFFSET_BEGINNING) for p in self._partitions]
            consumer.assign(assignment)

            pending: dict[int, int] = {}
            for partition in self._partitions:
                low, high = consumer.get_watermark_offsets(
                    TopicPartition(self._topic, partition), timeout=_METADATA_TIMEOUT
                )
                if high > low:
                    pending[partition] = high
            if not pending:
                self._loaded.set()

            while not self._stop_event.is_set():
                message = consumer.poll(_POLL_TIMEOUT)
                if message is None:
                    if pending:
                        self._drop_reached(pending, consumer.position(assignment))
                    continue
                error = message.error()
                if error is not None:
                    if error.code() == KafkaError._PARTITION_EOF:
                        continue
                    raise KafkaException(error)

                key = message.key()
                if key is not None and key.decode("utf-8") == self._instance_id:
                    self._latest.set(message.value())

                target = pending.get(message.partition())
                if target is not None and message.offset() + 1 >= target:
                    del pending[message.partition()]
                    if not pending:
                        self._loaded.set()
        except Exception as exc:
            # Surfaced to the caller by load().
            logger.error("State loader thread for topic %s failed: %s", self._topic, exc)
            self._failure = exc
            self._loaded.set()
        finally:
            if consumer is not None:
                consumer.close()

    def _drop_reached(self, pending: dict[int, int], positions: list[Any]) -> None:
        for position in positions:
            target = pending.get(position.partition)
            if target is not None and position.offset >= target:
                del pending[position.partition]
        if not pending:
            self._loaded.set()

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------

    def save(self, snapshot: Snapshot) -> None:
        if self._producer is None:
            raise StateStoreError("Kafka backend used before create_or_open()")
        document = serialize_snapshot(snapshot).encode("utf-8")
        delivery_errors: list[KafkaError] = []

        def _on_delivery(err: KafkaError | None, _msg: Any) -> None:
            if err is not None:
                delivery_errors.append(err)

        try:
            self._producer.produce(
                self._topic,
                key=self._instance_id.encode("utf-8"),
                value=document,
                on_delivery=_on_delivery,
            )
            remaining = self._producer.flush(self._load_timeout)
        except (KafkaException, BufferError) as exc:
            raise StateStoreError(f"Cannot write state to topic {self._topic}: {exc}") from exc

        if delivery_errors:
            raise StateStoreError(f"State delivery to topic {self._topic} failed: {delivery_errors[0]}")
        if remaining:
            raise StateStoreError(f"State delivery to topic {self._topic} timed out")

        self._latest.set(document)
        logger.debug("Wrote state to topic %s for instance %s", self._topic, self._instance_id)

    def load(self) -> Snapshot:
        """Block until the initial read completes, then return the latest snapshot.

        Raises
        ------
        StateStoreError
            If the loader thread failed or did not finish within
            ``kafka_state_load_timeout`` seconds.
        """
        if self._thread is None and not self._loaded.is_set():
            raise StateStoreError("Kafka backend used before create_or_open()")
        if not self._loaded.wait(self._load_timeout):
            raise StateStoreError(
                f"Timed out after {self._load_timeout:.0f}s reading state topic {self._topic}"
            )
        if self._failure is not None:
            raise StateStoreError(f"Cannot read state topic {self._topic}: {self._failure}") from self._failure
        return deserialize_snapshot(self._latest.get())
