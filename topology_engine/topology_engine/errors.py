"""Error hierarchy for reconciliation passes.

Errors fall into two groups.  Anything that threatens safe convergence
(:class:`ConfigurationError`, :class:`DivergenceError`,
:class:`TransientIOError`) aborts the whole pass.  Anything that signals
"already converged" (:class:`ResourceConflictError`) is absorbed where it
happens.
"""

from __future__ import annotations

from collections.abc import Iterable


class TopologyEngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(TopologyEngineError):
    """A setting is missing or invalid.  Fatal at startup, never retried."""


class DivergenceError(TopologyEngineError):
    """The persisted snapshot records resources the live cluster does not have.

    Parameters
    ----------
    resource_kind:
        Human-readable kind of the diverging resources, e.g. ``"binding"``.
    missing:
        The snapshot-recorded resources absent from the live cluster.
    """

    def __init__(self, resource_kind: str, missing: Iterable[object]) -> None:
        self.resource_kind = resource_kind
        self.missing = sorted(str(item) for item in missing)
        super().__init__(
            f"Remote state has changed since the last execution: {len(self.missing)} "
            f"{resource_kind}(s) recorded in the local state are missing from the cluster: "
            + ", ".join(self.missing)
        )


class TransientIOError(TopologyEngineError, OSError):
    """Network or storage failure while talking to a collaborator.

    Propagates out of :meth:`ExecutionPlan.run` and aborts the remaining
    queue.
    """


class OverloadError(TransientIOError):
    """The remote side reported an overload-class condition (throttling, busy).

    The only error type :func:`topology_engine.retry.retry_with_backoff`
    retries by default.
    """


class StateStoreError(TransientIOError):
    """The state backend is unreachable or holds a corrupt document."""


class ResourceConflictError(TopologyEngineError):
    """The resource already exists in the desired shape."""
