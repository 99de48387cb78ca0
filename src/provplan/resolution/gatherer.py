"""Repository gatherer — merges candidate units from many sources into one universe.

Repository loads are independent and may run on a thread pool, but the
merge always happens in location-list order, so the outcome never depends
on which load finished first.

INVARIANT: An unreadable location is a warning, never an error. Gathering
continues with the remaining locations.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import closing
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from provplan.domain.errors import RepositoryUnreadableError
from provplan.domain.plan import Diagnostic
from provplan.domain.units import InstallableUnit, UnitKey
from provplan.resolution.monitor import NullMonitor, ProgressMonitor, check_cancelled

logger = logging.getLogger(__name__)


class RepositorySource(Protocol):
    """The collaborator that turns a location into the units it holds."""

    def load(self, location: str) -> Sequence[InstallableUnit]:
        """Return every unit at *location* or raise RepositoryUnreadableError."""
        ...

    def known_locations(self) -> list[str]:
        """Locations to use when a caller names none."""
        ...


class MergePolicy(StrEnum):
    """How to settle two units with the same identity from different sources.

    ``fidelity``: a real unit replaces a mock-marked one; otherwise the first
    one seen is kept. ``first_seen``: the first one seen is always kept.
    """

    FIDELITY = "fidelity"
    FIRST_SEEN = "first_seen"


def has_higher_fidelity(incoming: InstallableUnit, current: InstallableUnit) -> bool:
    """Whether *incoming* should replace *current* under the fidelity policy."""
    return current.is_mock and not incoming.is_mock


@dataclass(frozen=True, slots=True)
class GatherResult:
    """The merged universe plus the locations that had to be skipped."""

    units: tuple[InstallableUnit, ...]
    diagnostics: tuple[Diagnostic, ...] = ()


type _Outcome = Sequence[InstallableUnit] | RepositoryUnreadableError


class RepositoryGatherer:
    """Builds a universe of units from seed units and repository locations.

    Parameters:
        source: Loads the units of a single location.
        merge_policy: Duplicate-identity rule, see :class:`MergePolicy`.
        parallel: Load locations on a thread pool.
        max_workers: Thread pool size when *parallel* is set.
    """

    def __init__(
        self,
        source: RepositorySource,
        *,
        merge_policy: MergePolicy = MergePolicy.FIDELITY,
        parallel: bool = False,
        max_workers: int = 4,
    ) -> None:
        self._source = source
        self._merge_policy = MergePolicy(merge_policy)
        self._parallel = parallel
        self._max_workers = max(1, max_workers)

    def gather(
        self,
        seed_units: Iterable[InstallableUnit],
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> GatherResult:
        """Merge *seed_units* with the units of every location.

        When *locations* is None the source's known locations are used.
        Raises PlanningCancelled if *monitor* is cancelled between loads.
        """
        monitor = monitor or NullMonitor()
        if locations is None:
            locations = self._source.known_locations()

        merged: dict[UnitKey, InstallableUnit] = {}
        for unit in seed_units:
            merged[unit.key] = unit

        diagnostics: list[Diagnostic] = []
        with closing(self._load_all(locations, monitor)) as loads:
            for location, outcome in loads:
                check_cancelled(monitor)
                if isinstance(outcome, RepositoryUnreadableError):
                    logger.warning(
                        "Skipping unreadable repository %s: %s", location, outcome.reason
                    )
                    diagnostics.append(Diagnostic.repository_unreadable(location, outcome.reason))
                    continue
                for unit in outcome:
                    self._merge(merged, unit)
                logger.debug("Merged %d units from %s", len(outcome), location)

        return GatherResult(tuple(merged.values()), tuple(diagnostics))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _merge(self, merged: dict[UnitKey, InstallableUnit], unit: InstallableUnit) -> None:
        current = merged.get(unit.key)
        if current is None:
            merged[unit.key] = unit
        elif self._merge_policy is MergePolicy.FIDELITY and has_higher_fidelity(unit, current):
            merged[unit.key] = unit

    def _load_one(self, location: str) -> _Outcome:
        try:
            return list(self._source.load(location))
        except RepositoryUnreadableError as exc:
            return exc

    def _load_all(
        self, locations: Sequence[str], monitor: ProgressMonitor
    ) -> Generator[tuple[str, _Outcome]]:
        """Yield ``(location, outcome)`` pairs in *locations* order."""
        if not self._parallel or len(locations) < 2:
            for location in locations:
                check_cancelled(monitor)
                yield location, self._load_one(location)
            return

        pool = ThreadPoolExecutor(max_workers=self._max_workers)
        try:
            futures: list[tuple[str, Future[_Outcome]]] = []
            for location in locations:
                check_cancelled(monitor)
                futures.append((location, pool.submit(self._load_one, location)))
            for location, future in futures:
                yield location, future.result()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
