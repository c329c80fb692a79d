"""Desired-versus-actual set diff shared by every resource kind.

One algorithm serves bindings, accounts and artefacts:

1. *Desired*: the flattened desired state, filtered to managed resources.
2. *Actual*: either a live query or the persisted snapshot (config-selected),
   filtered the same way.
3. *Divergence check*: when actual came from the snapshot and verification
   is on, every recorded resource must still exist live.
4. *Creates* = desired - actual; *deletes* = actual - desired (only when
   deletions are allowed); *updates* = matched pairs whose content changed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from topology_engine.actions.base import Action
from topology_engine.errors import DivergenceError

logger = logging.getLogger(__name__)

R = TypeVar("R")

KeyFn = Callable[[R], Hashable]
ActionFactory = Callable[[list[R]], Sequence[Action]]


@dataclass
class ResourceDiff(Generic[R]):
    """Outcome of comparing desired and actual resources of one kind."""

    to_create: list[R] = field(default_factory=list)
    to_delete: list[R] = field(default_factory=list)
    to_update: list[R] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.to_create or self.to_delete or self.to_update)


def _index(items: Iterable[R], key: KeyFn[R]) -> dict[Hashable, R]:
    indexed: dict[Hashable, R] = {}
    for item in items:
        indexed.setdefault(key(item), item)
    return indexed


def compute_diff(
    desired: Iterable[R],
    actual: Iterable[R],
    key: KeyFn[R],
    allow_delete: bool,
    changed: Callable[[R, R], bool] | None = None,
) -> ResourceDiff[R]:
    """Compare *desired* against *actual* by *key*.

    Both inputs are deduplicated by key (first occurrence wins) and their
    iteration order is preserved in the output.

    Parameters
    ----------
    desired, actual:
        The two sides of the comparison.
    key:
        Identity of a resource.
    allow_delete:
        When false, ``to_delete`` is always empty.
    changed:
        Optional ``(desired, actual) -> bool`` predicate; desired items whose
        matched actual item has changed are returned in ``to_update``.
    """
    desired_by_key = _index(desired, key)
    actual_by_key = _index(actual, key)

    diff: ResourceDiff[R] = ResourceDiff()
    for item_key, item in desired_by_key.items():
        current = actual_by_key.get(item_key)
        if current is None:
            diff.to_create.append(item)
        elif changed is not None and changed(item, current):
            diff.to_update.append(item)

    stale = [item for item_key, item in actual_by_key.items() if item_key not in desired_by_key]
    if allow_delete:
        diff.to_delete = stale
    elif stale:
        logger.debug("%d resource(s) not in desired state kept because deletion is disabled", len(stale))
    return diff


def detect_divergence(
    recorded: Iterable[R],
    live: Iterable[R],
    key: KeyFn[R],
    kind: str,
) -> None:
    """Raise if any *recorded* resource is missing from *live*.

    Raises
    ------
    DivergenceError
        Naming every missing resource.
    """
    live_keys = {key(item) for item in live}
    missing = [item for item in recorded if key(item) not in live_keys]
    if missing:
        raise DivergenceError(kind, missing)


@dataclass
class ReconcileSpec(Generic[R]):
    """Parameters of one run of :func:`reconcile` for a single resource kind."""

    kind: str
    desired: Callable[[], Iterable[R]]
    recorded: Callable[[], Iterable[R]]
    live: Callable[[], Iterable[R]]
    matches: Callable[[R], bool]
    key: KeyFn[R]
    create: ActionFactory[R]
    delete: ActionFactory[R]
    update: ActionFactory[R] | None = None
    changed: Callable[[R, R], bool] | None = None
    exclude: Callable[[R], bool] | None = None
    fetch_from_cluster: bool = False
    verify_remote_state: bool = True
    allow_delete: bool = False


def reconcile(spec: ReconcileSpec[R]) -> list[Action]:
    """Return the actions converging one resource kind, creates first.

    Raises
    ------
    DivergenceError
        If the snapshot records resources absent from the live cluster.
    """

    def _managed(item: R) -> bool:
        if spec.exclude is not None and spec.exclude(item):
            return False
        return spec.matches(item)

    desired = [item for item in spec.desired() if spec.matches(item)]

    if spec.fetch_from_cluster:
        actual = [item for item in spec.live() if _managed(item)]
    else:
        actual = [item for item in spec.recorded() if _managed(item)]
        if spec.verify_remote_state:
            detect_divergence(actual, spec.live(), spec.key, spec.kind)

    diff = compute_diff(desired, actual, spec.key, spec.allow_delete, spec.changed)
    logger.debug(
        "%s diff: %d to create, %d to update, %d to delete",
        spec.kind,
        len(diff.to_create),
        len(diff.to_update),
        len(diff.to_delete),
    )

    actions: list[Action] = []
    if diff.to_create:
        actions.extend(spec.create(diff.to_create))
    if diff.to_update and spec.update is not None:
        actions.extend(spec.update(diff.to_update))
    if diff.to_delete:
        actions.extend(spec.delete(diff.to_delete))
    return actions
