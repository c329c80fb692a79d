"""Base classes for units of work executed by an :class:`ExecutionPlan`.

Every action has two renderings: a human summary (``str(action)``, the
pretty JSON of :meth:`BaseAction.props`) printed before it runs, and a list
of audit records (:meth:`Action.refs`), one per resource it touches.
"""

from __future__ import annotations

import abc
import json
import logging
from typing import Any

from topology_engine.state.snapshot import Snapshot

logger = logging.getLogger(__name__)


def pretty_json(document: Any) -> str:
    """Render *document* as stable, indented JSON."""
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)


class Action(abc.ABC):
    """A single side effect against the cluster or a hosted server."""

    # Deletes run after every create and update of the pass.
    deletes: bool = False

    @abc.abstractmethod
    def run(self) -> Any:
        """Perform the side effect.

        Returns
        -------
        Any
            An outcome passed to :meth:`apply_to`; ``None`` for most actions.

        Raises
        ------
        TransientIOError
            On network or storage failure.
        """

    @abc.abstractmethod
    def refs(self) -> list[str]:
        """Return one audit record per resource this action touches."""

    def apply_to(self, state: Snapshot, outcome: Any) -> None:
        """Fold the effect of a completed :meth:`run` into *state*."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def summary(self) -> str:
        return str(self)


class BaseAction(Action):
    """Action rendered from a props mapping and per-resource detailed props."""

    @abc.abstractmethod
    def props(self) -> dict[str, Any]:
        """Return the summary mapping; empty when there is nothing to report."""

    @abc.abstractmethod
    def detailed_props(self) -> list[dict[str, Any]]:
        """Return one audit mapping per touched resource."""

    def refs(self) -> list[str]:
        records: list[str] = []
        for detail in self.detailed_props():
            try:
                records.append(pretty_json(detail))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unrenderable audit record of %s: %s", self.name, exc)
        return records

    def resource_name(self, verb: str, *parts: object) -> str:
        """Build ``rn://<verb>/<Operation>/<part>/...``."""
        return "/".join([f"rn://{verb}", self.name, *(str(part) for part in parts)])

    def __str__(self) -> str:
        try:
            props = self.props()
            return pretty_json(props) if props else ""
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot render summary of %s: %s", self.name, exc)
            return ""
