"""RequirementGraph — lazy-built NetworkX graph of the "requires" relation.

Built per planning call over one unit collection (a state), no cross-call
cache. Edge ``D -> U`` means U has a mandatory requirement that D
satisfies. Commands that never order a state never build it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import networkx as nx

from provplan.domain.units import InstallableUnit
from provplan.resolution.capabilities import CapabilityIndex

logger = logging.getLogger(__name__)

type _Graph = nx.DiGraph


class RequirementGraph:
    """Lazy-loading dependency graph over a fixed set of units.

    Nodes are the units themselves (hashed by identity) and carry a
    ``position`` attribute: their index in the input iteration order.
    """

    def __init__(self, units: Iterable[InstallableUnit]) -> None:
        self._units: list[InstallableUnit] = list(dict.fromkeys(units))
        self._graph: _Graph | None = None

    @property
    def units(self) -> list[InstallableUnit]:
        return list(self._units)

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def position(self, unit: InstallableUnit) -> int:
        return self.graph.nodes[unit]["position"]

    def dependents_of(self, unit: InstallableUnit) -> list[InstallableUnit]:
        """Units within the set that require *unit*."""
        return sorted(self.graph.successors(unit), key=self.position)

    def cycles(self) -> list[list[InstallableUnit]]:
        """Groups of mutually-requiring units, each in input order."""
        groups = [
            sorted(component, key=self.position)
            for component in nx.strongly_connected_components(self.graph)
            if len(component) > 1
        ]
        return sorted(groups, key=lambda g: self.position(g[0]))

    def _build(self) -> _Graph:
        """Add every unit, then an edge for each satisfied mandatory requirement.

        All units are added first so that isolated units appear in the graph.
        """
        g: _Graph = nx.DiGraph()
        for pos, unit in enumerate(self._units):
            g.add_node(unit, position=pos)

        index = CapabilityIndex(self._units)
        for unit in self._units:
            for requirement in unit.mandatory_requirements():
                for provider in index.providers(requirement):
                    if provider == unit:
                        continue
                    g.add_edge(provider, unit, requirement=str(requirement))

        logger.debug(
            "Built requirement graph: %d units, %d edges",
            g.number_of_nodes(),
            g.number_of_edges(),
        )
        return g
