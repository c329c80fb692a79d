"""Forward the audit records of executed actions to an appender."""

from __future__ import annotations

import logging
from types import TracebackType

from topology_engine.actions.base import Action
from topology_engine.interfaces import Appender

logger = logging.getLogger(__name__)


class Auditor:
    """Write every audit record of an action to *appender*.

    Appender failures are logged and skipped; auditing never aborts a pass.
    """

    def __init__(self, appender: Appender) -> None:
        self.appender = appender
        self.appender.init()

    def log(self, action: Action) -> None:
        for record in action.refs():
            try:
                self.appender.log(record)
            except (OSError, ValueError) as exc:
                logger.warning("Failed to write audit record of %s: %s", action.name, exc)

    def close(self) -> None:
        self.appender.close()

    def __enter__(self) -> Auditor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class VoidAuditor(Auditor):
    """Auditor used when auditing is disabled."""

    def __init__(self) -> None:
        pass

    def log(self, action: Action) -> None:
        return None

    def close(self) -> None:
        return None
