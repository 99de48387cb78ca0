"""CapabilityIndex — provider lookup by capability namespace and name.

Candidates come back in unit insertion order, so every caller that walks
them (greedy expansion, graph building) is deterministic.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator

from provplan.domain.units import (
    InstallableUnit,
    ProvidedCapability,
    RequiredCapability,
    UnitKey,
)


type _Provider = tuple[ProvidedCapability, InstallableUnit]


class CapabilityIndex:
    """Index of the capabilities provided by a fixed collection of units."""

    def __init__(self, units: Iterable[InstallableUnit] = ()) -> None:
        self._units: dict[UnitKey, InstallableUnit] = {}
        self._providers: defaultdict[tuple[str, str], list[_Provider]] = defaultdict(list)
        for unit in units:
            self.add(unit)

    def add(self, unit: InstallableUnit) -> None:
        """Index *unit*. A second unit with the same identity is ignored."""
        if unit.key in self._units:
            return
        self._units[unit.key] = unit
        for capability in unit.provides:
            self._providers[(capability.namespace, capability.name)].append(
                (capability, unit)
            )

    def providers(self, requirement: RequiredCapability) -> list[InstallableUnit]:
        """Units offering a capability that satisfies *requirement*."""
        entries = self._providers.get((requirement.namespace, requirement.name), ())
        matched: dict[UnitKey, InstallableUnit] = {}
        for capability, unit in entries:
            if capability.satisfies(requirement):
                matched.setdefault(unit.key, unit)
        return list(matched.values())

    def units(self) -> list[InstallableUnit]:
        return list(self._units.values())

    def __contains__(self, unit: object) -> bool:
        return isinstance(unit, InstallableUnit) and unit.key in self._units

    def __iter__(self) -> Iterator[InstallableUnit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)


def best_candidate(candidates: Iterable[InstallableUnit]) -> InstallableUnit:
    """Pick the newest candidate; ties go to the lowest identity string.

    Raises ValueError on an empty iterable.
    """
    ranked = sorted(candidates, key=lambda u: u.identity)
    if not ranked:
        msg = "best_candidate() requires at least one candidate"
        raise ValueError(msg)
    # max() keeps the first maximal element, i.e. the lowest identity.
    return max(ranked, key=lambda u: u.version)
