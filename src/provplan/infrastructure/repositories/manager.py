"""RepositoryManager — scheme-keyed loader registry.

Implements the planner's RepositorySource: ``load(location)`` dispatches to
the loader registered for the location's scheme and ``known_locations()``
returns the configured default list.

INVARIANT: ``load`` raises only RepositoryUnreadableError. Any other
loader failure is converted so one bad location never aborts gathering.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from urllib.parse import urlparse

from provplan.domain.errors import RepositoryUnreadableError
from provplan.domain.units import InstallableUnit
from provplan.infrastructure.repositories.base import RepositoryLoader

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "file"


def scheme_of(location: str) -> str:
    """Scheme of *location*; bare paths (and Windows drive letters) map to ``file``."""
    scheme = urlparse(location).scheme
    if not scheme or len(scheme) == 1:
        return DEFAULT_SCHEME
    return scheme.lower()


class RepositoryManager:
    """Dispatches repository loads to registered loaders by scheme.

    Parameters:
        loaders: Initial loaders; a later loader for the same scheme wins.
        locations: Locations used when a caller names none.
    """

    def __init__(
        self,
        loaders: Iterable[RepositoryLoader] = (),
        locations: Sequence[str] = (),
    ) -> None:
        self._loaders: dict[str, RepositoryLoader] = {}
        self._locations = list(locations)
        for loader in loaders:
            self.register(loader)

    def register(self, loader: RepositoryLoader) -> None:
        """Register *loader* for every scheme it declares."""
        for scheme in loader.schemes:
            previous = self._loaders.get(scheme)
            if previous is not None and previous is not loader:
                logger.debug(
                    "Loader %s replaces %s for scheme %r",
                    type(loader).__name__,
                    type(previous).__name__,
                    scheme,
                )
            self._loaders[scheme.lower()] = loader

    @property
    def schemes(self) -> list[str]:
        return sorted(self._loaders)

    def known_locations(self) -> list[str]:
        return list(self._locations)

    def load(self, location: str) -> Sequence[InstallableUnit]:
        scheme = scheme_of(location)
        loader = self._loaders.get(scheme)
        if loader is None:
            raise RepositoryUnreadableError(location, f"no loader for scheme {scheme!r}")
        try:
            return loader.load(location)
        except RepositoryUnreadableError:
            raise
        except Exception as exc:
            logger.debug("Loader %s failed on %s", type(loader).__name__, location, exc_info=True)
            raise RepositoryUnreadableError(location, f"{type(exc).__name__}: {exc}") from exc
