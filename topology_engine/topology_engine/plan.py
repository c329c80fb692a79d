"""Execution plan: one reconciliation pass over an ordered queue of actions.

The plan loads the prior snapshot into an in-memory mirror, accepts
actions from the reconcilers and executes them strictly in append order.
After a successful non-dry-run pass the mirror replaces the persisted
snapshot.  A dry run, or any failure, leaves the persisted snapshot
untouched.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import TextIO

from topology_engine.actions.base import Action
from topology_engine.audit.auditor import Auditor, VoidAuditor
from topology_engine.state.snapshot import Snapshot
from topology_engine.state.store import StateStore

logger = logging.getLogger(__name__)


class ExecutionPlan:
    """Ordered queue of actions plus the mirror of applied state.

    Parameters
    ----------
    store:
        State store the prior snapshot is loaded from and the result is
        written to.
    output:
        Stream action summaries are printed to.  Defaults to ``sys.stdout``.
    auditor:
        Receives the audit records of every executed action.
    """

    def __init__(
        self,
        store: StateStore,
        output: TextIO | None = None,
        auditor: Auditor | None = None,
    ) -> None:
        self._store = store
        self._output = output
        self._auditor = auditor if auditor is not None else VoidAuditor()
        self._actions: list[Action] = []
        self._lock = threading.Lock()
        self._state = Snapshot()

    @classmethod
    def init(
        cls,
        store: StateStore,
        output: TextIO | None = None,
        auditor: Auditor | None = None,
    ) -> ExecutionPlan:
        """Create a plan whose mirror starts from the persisted snapshot.

        Raises
        ------
        StateStoreError
            If the prior snapshot cannot be loaded.
        """
        plan = cls(store, output, auditor)
        try:
            plan._state = store.load()
        except Exception:
            store.close()
            raise
        logger.info("Loaded prior state with %d resource(s)", plan._state.size())
        return plan

    @property
    def state(self) -> Snapshot:
        """The mirror of applied state.  Reconcilers must treat it as read-only."""
        return self._state

    @property
    def actions(self) -> list[Action]:
        with self._lock:
            return list(self._actions)

    def add(self, action: Action) -> None:
        """Append *action*.  Safe to call from several threads before :meth:`run`."""
        with self._lock:
            self._actions.append(action)

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)

    def is_empty(self) -> bool:
        return len(self) == 0

    def run(self, dry_run: bool = False) -> None:
        """Execute the queue in FIFO order.

        Every non-empty summary is printed.  Unless *dry_run*, each action
        is executed, audited and folded into the mirror; the first failing
        action aborts the remaining queue and its exception propagates.

        Raises
        ------
        TransientIOError
            Or any other error raised by an action, after the store is
            closed without saving.
        """
        actions = self.actions
        logger.info("Running %d action(s)%s", len(actions), " (dry run)" if dry_run else "")

        completed = False
        try:
            for action in actions:
                self._execute(action, dry_run)
            completed = True
        finally:
            if completed and not dry_run:
                self._store.replace_with(self._state)
                self._store.flush_and_close()
                logger.info("Persisted state with %d resource(s)", self._state.size())
            else:
                self._store.close()

    def close(self) -> None:
        """Release the store without running or saving anything."""
        self._store.close()

    def _execute(self, action: Action, dry_run: bool) -> None:
        summary = action.summary
        if summary:
            output = self._output if self._output is not None else sys.stdout
            output.write(summary + "\n")
        if dry_run:
            return
        try:
            outcome = action.run()
        except Exception:
            logger.error("Action %s failed; aborting the remaining queue:\n%s", action.name, summary)
            raise
        self._auditor.log(action)
        action.apply_to(self._state, outcome)
