"""Logging setup for reconciliation runs.

Text output by default.  With ``TOPOLOGY_STRUCTURED_LOGGING=true`` each
record is emitted as a single-line JSON object instead::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "topology_engine.plan",
        "message": "...",
        "instance_id": "topology-engine",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any

from topology_engine.config import Settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def __init__(self, instance_id: str | None = None) -> None:
        super().__init__()
        self._instance_id = instance_id

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._instance_id:
            payload["instance_id"] = self._instance_id

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    """Install root handlers according to *settings*.

    Safe to call more than once; existing root handlers are replaced.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if settings.structured_logging:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter(settings.instance_id))
        root.addHandler(handler)
        root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=_TEXT_FORMAT, stream=sys.stderr)

    if settings.debug:
        logging.getLogger("topology_engine").setLevel(logging.DEBUG)
