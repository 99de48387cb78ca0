"""In-memory repositories addressed as ``memory:<name>``."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from provplan.domain.errors import RepositoryUnreadableError
from provplan.domain.units import InstallableUnit

MEMORY_SCHEME = "memory"


class InMemoryRepositoryLoader:
    """Named unit lists held in process. Used by tests and embedding callers."""

    schemes: tuple[str, ...] = (MEMORY_SCHEME,)

    def __init__(self, repositories: dict[str, Iterable[InstallableUnit]] | None = None) -> None:
        self._lock = threading.Lock()
        self._repositories: dict[str, tuple[InstallableUnit, ...]] = {}
        for name, units in (repositories or {}).items():
            self.add(name, units)

    @staticmethod
    def location(name: str) -> str:
        """The location string that addresses repository *name*."""
        return f"{MEMORY_SCHEME}:{name}"

    def add(self, name: str, units: Iterable[InstallableUnit]) -> str:
        """Store *units* under *name*, replacing any previous list. Returns its location."""
        with self._lock:
            self._repositories[name] = tuple(units)
        return self.location(name)

    def remove(self, name: str) -> None:
        with self._lock:
            self._repositories.pop(name, None)

    def load(self, location: str) -> list[InstallableUnit]:
        scheme, _, name = location.partition(":")
        if scheme != MEMORY_SCHEME:
            raise RepositoryUnreadableError(location, f"not a {MEMORY_SCHEME} location")
        with self._lock:
            units = self._repositories.get(name)
        if units is None:
            raise RepositoryUnreadableError(location, "no such in-memory repository")
        return list(units)
