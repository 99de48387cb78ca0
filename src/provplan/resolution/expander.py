"""Dependency expander — transitive closure of the units a set of roots needs.

Breadth-first from the roots. For each requirement of each visited unit
one provider is selected, preferring, in order:

1. a provider already in the closure,
2. a provider from the already-installed baseline,
3. the newest provider in the universe (ties: lowest identity string).

Greedy requirements retain every provider instead of one.

INVARIANT: Expansion never raises for unresolvable requirements. Every
unsatisfied mandatory requirement is collected as a diagnostic in a single
pass and the caller decides what to do with them.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from provplan.domain.plan import Diagnostic, Severity
from provplan.domain.units import InstallableUnit, RequiredCapability, UnitKey
from provplan.resolution.capabilities import CapabilityIndex, best_candidate
from provplan.resolution.monitor import NullMonitor, ProgressMonitor, check_cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExpansionResult:
    """The closure (in visit order, roots first) and what could not be resolved."""

    closure: tuple[InstallableUnit, ...]
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        """True when no diagnostic is an error."""
        return all(d.severity < Severity.ERROR for d in self.diagnostics)

    @property
    def unresolved(self) -> list[tuple[InstallableUnit, RequiredCapability]]:
        return [
            (d.unit, d.requirement)
            for d in self.diagnostics
            if d.unit is not None and d.requirement is not None
        ]

    def __contains__(self, unit: object) -> bool:
        return unit in self.closure

    def __len__(self) -> int:
        return len(self.closure)


class DependencyExpander:
    """Computes closures against one universe and one installed baseline.

    Installed units are always candidates, even when no repository in the
    universe lists them.
    """

    def __init__(
        self,
        universe: Iterable[InstallableUnit],
        already_installed: Iterable[InstallableUnit] = (),
    ) -> None:
        installed = list(already_installed)
        self._installed: set[UnitKey] = {u.key for u in installed}
        self._index = CapabilityIndex([*universe, *installed])

    def expand(
        self,
        to_add: Iterable[InstallableUnit] | None = None,
        to_keep: Iterable[InstallableUnit] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ExpansionResult:
        """Expand ``to_add + to_keep`` into their transitive closure.

        Raises PlanningCancelled if *monitor* is cancelled between units.
        """
        monitor = monitor or NullMonitor()
        visited: dict[UnitKey, InstallableUnit] = {}
        queue: deque[InstallableUnit] = deque()
        for root in [*(to_add or ()), *(to_keep or ())]:
            if root.key not in visited:
                visited[root.key] = root
                queue.append(root)

        diagnostics: list[Diagnostic] = []
        while queue:
            check_cancelled(monitor)
            unit = queue.popleft()
            for requirement in unit.requires:
                candidates = self._index.providers(requirement)
                if not candidates:
                    if not requirement.optional:
                        diagnostics.append(Diagnostic.unresolved(unit, requirement))
                    continue

                if requirement.greedy:
                    selected = candidates
                else:
                    selected = [self._select(candidates, visited)]
                for candidate in selected:
                    if candidate.key not in visited:
                        visited[candidate.key] = candidate
                        queue.append(candidate)

        logger.debug(
            "Expanded closure: %d units, %d unresolved requirement(s)",
            len(visited),
            len(diagnostics),
        )
        return ExpansionResult(tuple(visited.values()), tuple(diagnostics))

    def _select(
        self,
        candidates: list[InstallableUnit],
        visited: dict[UnitKey, InstallableUnit],
    ) -> InstallableUnit:
        in_closure = [c for c in candidates if c.key in visited]
        if in_closure:
            return best_candidate(in_closure)
        installed = [c for c in candidates if c.key in self._installed]
        return best_candidate(installed or candidates)


def expand(
    to_add: Iterable[InstallableUnit] | None,
    to_keep: Iterable[InstallableUnit] | None,
    universe: Iterable[InstallableUnit],
    already_installed: Iterable[InstallableUnit] = (),
    *,
    monitor: ProgressMonitor | None = None,
) -> ExpansionResult:
    """One-shot expansion. See :class:`DependencyExpander`."""
    return DependencyExpander(universe, already_installed).expand(
        to_add, to_keep, monitor=monitor
    )
