"""Named factory registries for pluggable implementations.

State backends, audit appenders and access-control providers are selected
by a configuration string.  Each family has a :class:`Registry` that maps
the known kinds to factory callables; integrators add their own kinds with
:meth:`Registry.register`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from topology_engine.config import Settings
from topology_engine.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Factory = Callable[[Settings], T]


def _normalise(kind: str | Enum) -> str:
    value = kind.value if isinstance(kind, Enum) else kind
    return str(value).strip().lower()


class Registry(Generic[T]):
    """Registry of factories for one family of implementations.

    Parameters
    ----------
    family:
        Human-readable name of the family, used in error messages.
    """

    def __init__(self, family: str) -> None:
        self._family = family
        self._factories: dict[str, Factory[T]] = {}

    def register(self, kind: str | Enum, factory: Factory[T]) -> None:
        """Register *factory* under *kind*.

        Raises
        ------
        ValueError
            If *kind* is already registered.
        """
        key = _normalise(kind)
        if key in self._factories:
            raise ValueError(
                f"{self._family} kind {key!r} is already registered. Unregister the existing one first."
            )
        self._factories[key] = factory
        logger.debug("Registered %s kind: %s", self._family, key)

    def unregister(self, kind: str | Enum) -> None:
        """Remove *kind* from the registry.

        Raises
        ------
        KeyError
            If *kind* is not registered.
        """
        key = _normalise(kind)
        if key not in self._factories:
            raise KeyError(f"{self._family} kind {key!r} is not registered.")
        del self._factories[key]
        logger.debug("Unregistered %s kind: %s", self._family, key)

    def create(self, kind: str | Enum, settings: Settings) -> T:
        """Build an instance of *kind* from *settings*.

        Raises
        ------
        ConfigurationError
            If *kind* is unknown.
        """
        key = _normalise(kind)
        factory = self._factories.get(key)
        if factory is None:
            raise ConfigurationError(
                f"Unknown {self._family} kind {key!r}; known kinds: {', '.join(self.kinds()) or '<none>'}"
            )
        return factory(settings)

    def kinds(self) -> list[str]:
        """Return all registered kinds, sorted."""
        return sorted(self._factories)

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, kind: object) -> bool:
        if not isinstance(kind, (str, Enum)):
            return False
        return _normalise(kind) in self._factories
