"""RepositoryLoader protocol — one loader per location scheme family."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from provplan.domain.units import InstallableUnit


@runtime_checkable
class RepositoryLoader(Protocol):
    """Turns a location into the units it holds.

    ``schemes`` lists the URL schemes the loader answers for. Bare
    filesystem paths use the ``file`` scheme. Loaders may be called from
    several threads at once.
    """

    schemes: tuple[str, ...]

    def load(self, location: str) -> Sequence[InstallableUnit]:
        """Return every unit at *location*.

        Raises RepositoryUnreadableError when the location cannot be read.
        """
        ...
