"""Relational state backend on SQLAlchemy.

One row per reconciler instance in ``topology_state``.  Any SQLAlchemy URL
works; the default is a local SQLite file.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from topology_engine.config import Settings
from topology_engine.errors import StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for the state tables."""


class StateTable(Base):
    """Latest persisted snapshot of each reconciler instance."""

    __tablename__ = "topology_state"

    instance_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class SqlBackend:
    """Persist the snapshot in a SQL database.

    Parameters
    ----------
    engine:
        Optional pre-built engine.  When omitted one is created from
        ``settings.sql_url``.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine
        self._instance_id = ""

    def configure(self, settings: Settings) -> None:
        self._instance_id = settings.instance_id
        if self._engine is None:
            url = make_url(settings.sql_url)
            if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(url)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StateStoreError("SQL backend used before configure()")
        return self._engine

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        """Create the state table if needed.  The row is only replaced by :meth:`save`."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Cannot open state table: {exc}") from exc

    def close(self) -> None:
        """Connections are pooled by the engine."""

    def save(self, snapshot: Snapshot) -> None:
        document = serialize_snapshot(snapshot)
        try:
            with Session(self.engine) as session, session.begin():
                row = session.get(StateTable, self._instance_id)
                if row is None:
                    session.add(StateTable(instance_id=self._instance_id, content=document))
                else:
                    row.content = document
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Cannot write state for {self._instance_id}: {exc}") from exc
        logger.debug("Wrote state row for instance %s", self._instance_id)

    def load(self) -> Snapshot:
        try:
            with Session(self.engine) as session:
                row = session.get(StateTable, self._instance_id)
                document = row.content if row is not None else None
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Cannot read state for {self._instance_id}: {exc}") from exc
        return deserialize_snapshot(document)
