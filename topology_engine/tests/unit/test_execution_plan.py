"""Unit tests for topology_engine.plan."""

from __future__ import annotations

import io
import threading
from typing import Any
from unittest.mock import MagicMock

import pytest
from conftest import InMemoryBackend

from topology_engine.actions.base import BaseAction
from topology_engine.errors import StateStoreError, TransientIOError
from topology_engine.interfaces import OpenMode
from topology_engine.plan import ExecutionPlan
from topology_engine.state.serializer import serialize_snapshot
from topology_engine.state.snapshot import Snapshot
from topology_engine.state.store import StateStore


class RecordTopic(BaseAction):
    """Test action that records its execution and folds a topic into state."""

    def __init__(self, topic: str, log: list[str], fail: bool = False) -> None:
        self.topic = topic
        self.log = log
        self.fail = fail

    def run(self) -> None:
        if self.fail:
            raise TransientIOError(f"cannot reach broker for {self.topic}")
        self.log.append(self.topic)

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        state.add_topics([self.topic])

    def props(self) -> dict[str, Any]:
        return {"Operation": self.name, "Topic": self.topic}

    def detailed_props(self) -> list[dict[str, Any]]:
        return [{"topic": self.topic}]


def _plan(backend: InMemoryBackend, output: io.StringIO | None = None, auditor: Any = None) -> ExecutionPlan:
    return ExecutionPlan.init(StateStore(backend), output or io.StringIO(), auditor)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestInit:
    def test_loads_prior_state(self):
        backend = InMemoryBackend(serialize_snapshot(Snapshot(topics={"a"})))
        plan = _plan(backend)
        assert plan.state.topics == {"a"}
        assert backend.opened == [OpenMode.APPEND]

    def test_empty_plan(self, backend: InMemoryBackend):
        plan = _plan(backend)
        assert plan.is_empty()
        assert len(plan) == 0


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestRun:
    def test_fifo_and_persist(self, backend: InMemoryBackend):
        log: list[str] = []
        plan = _plan(backend)
        for topic in ["c", "a", "b"]:
            plan.add(RecordTopic(topic, log))
        plan.run()

        assert log == ["c", "a", "b"]
        assert backend.saves == 1
        assert backend.opened[-1] == OpenMode.TRUNCATE
        assert _plan(backend).state.topics == {"a", "b", "c"}

    def test_summaries_printed(self, backend: InMemoryBackend):
        output = io.StringIO()
        plan = _plan(backend, output)
        plan.add(RecordTopic("a", []))
        plan.run()
        assert '"Topic": "a"' in output.getvalue()

    def test_dry_run_leaves_state_untouched(self):
        document = serialize_snapshot(Snapshot(topics={"kept"}))
        backend = InMemoryBackend(document)
        log: list[str] = []
        output = io.StringIO()
        plan = _plan(backend, output)
        plan.add(RecordTopic("new", log))
        plan.run(dry_run=True)

        assert log == []
        assert backend.saves == 0
        assert backend.document == document
        assert backend.closes == 1
        assert '"Topic": "new"' in output.getvalue()

    def test_failure_aborts_queue_and_skips_save(self):
        document = serialize_snapshot(Snapshot(topics={"kept"}))
        backend = InMemoryBackend(document)
        log: list[str] = []
        plan = _plan(backend)
        plan.add(RecordTopic("a", log))
        plan.add(RecordTopic("b", log, fail=True))
        plan.add(RecordTopic("c", log))

        with pytest.raises(TransientIOError, match="broker"):
            plan.run()
        assert log == ["a"]
        assert backend.saves == 0
        assert backend.document == document
        assert backend.closes == 1

    def test_audits_executed_actions_only(self, backend: InMemoryBackend):
        auditor = MagicMock()
        plan = _plan(backend, auditor=auditor)
        first = RecordTopic("a", [])
        plan.add(first)
        plan.add(RecordTopic("b", [], fail=True))
        with pytest.raises(TransientIOError):
            plan.run()
        auditor.log.assert_called_once_with(first)

    def test_dry_run_not_audited(self, backend: InMemoryBackend):
        auditor = MagicMock()
        plan = _plan(backend, auditor=auditor)
        plan.add(RecordTopic("a", []))
        plan.run(dry_run=True)
        auditor.log.assert_not_called()

    def test_failed_save_keeps_prior_state(self):
        document = serialize_snapshot(Snapshot(topics={"kept"}))
        backend = InMemoryBackend(document, fail_save=True)
        plan = _plan(backend)
        plan.add(RecordTopic("a", []))

        with pytest.raises(StateStoreError, match="unreachable"):
            plan.run()
        assert backend.document == document
        assert backend.closes == 1

    def test_empty_pass_persists_loaded_state(self):
        backend = InMemoryBackend(serialize_snapshot(Snapshot(topics={"a"})))
        _plan(backend).run()
        assert backend.saves == 1
        assert _plan(backend).state.topics == {"a"}


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrentAdd:
    def test_concurrent_add(self, backend: InMemoryBackend):
        plan = _plan(backend)
        log: list[str] = []

        def _add(prefix: str) -> None:
            for i in range(200):
                plan.add(RecordTopic(f"{prefix}-{i}", log))

        threads = [threading.Thread(target=_add, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(plan) == 800
        plan.run()
        assert len(log) == 800
        assert len(plan.state.topics) == 800
