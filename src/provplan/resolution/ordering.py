"""State orderer — a dependency-respecting total order over a unit set.

Every unit comes after the units within the set that satisfy its mandatory
requirements. Units with no ordering constraint between them keep their
input order. Requirement cycles are collapsed and their members emitted in
input order, so the result is deterministic even for cyclic states.

The same order serves installation (read forwards: dependencies first) and
removal (read backwards: dependents first).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import networkx as nx

from provplan.domain.units import InstallableUnit
from provplan.resolution.graph import RequirementGraph

logger = logging.getLogger(__name__)


def order_units(units: Iterable[InstallableUnit] | RequirementGraph) -> list[InstallableUnit]:
    """Return *units* topologically sorted along the "requires" relation."""
    rg = units if isinstance(units, RequirementGraph) else RequirementGraph(units)
    g = rg.graph
    if g.number_of_nodes() == 0:
        return []

    position: dict[InstallableUnit, int] = nx.get_node_attributes(g, "position")

    # Collapse cycles so the remaining graph is a DAG.
    condensed = nx.condensation(g)
    first_seen = {
        component: min(position[u] for u in condensed.nodes[component]["members"])
        for component in condensed.nodes
    }
    if condensed.number_of_nodes() < g.number_of_nodes():
        logger.debug("Breaking %d requirement cycle(s) by input order", len(rg.cycles()))

    ordered: list[InstallableUnit] = []
    for component in nx.lexicographical_topological_sort(condensed, key=first_seen.__getitem__):
        members = condensed.nodes[component]["members"]
        ordered.extend(sorted(members, key=position.__getitem__))
    return ordered
