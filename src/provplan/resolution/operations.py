"""Operation generator and sorter.

``generate_operands`` diffs two states by identity; ``sort_operands``
arranges the result so that installs run dependencies-first, removals run
dependents-first, and updates run last.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence

from provplan.domain.operands import Operand, OperandKind
from provplan.domain.units import InstallableUnit, UnitKey
from provplan.domain.versions import Version


def _version(unit: InstallableUnit) -> Version:
    return unit.version


def generate_operands(
    old_state: Iterable[InstallableUnit],
    new_state: Iterable[InstallableUnit],
) -> list[Operand]:
    """Diff *old_state* against *new_state*.

    - only in the new state: install
    - only in the old state: uninstall
    - same id, different version on each side: update
    - identical on both sides: nothing

    When one id has several versions on each side they are paired oldest
    to oldest; leftovers become plain installs or uninstalls. The result is
    installs, then uninstalls, then updates, each in state order.
    """
    old = dict.fromkeys(old_state)
    new = dict.fromkeys(new_state)
    removed = [u for u in old if u not in new]
    added = [u for u in new if u not in old]

    added_by_id: defaultdict[str, list[InstallableUnit]] = defaultdict(list)
    for unit in added:
        added_by_id[unit.id].append(unit)
    removed_by_id: defaultdict[str, list[InstallableUnit]] = defaultdict(list)
    for unit in removed:
        removed_by_id[unit.id].append(unit)

    updates: list[Operand] = []
    paired: set[UnitKey] = set()
    for unit_id, olds in removed_by_id.items():
        news = added_by_id.get(unit_id)
        if not news:
            continue
        for before, after in zip(sorted(olds, key=_version), sorted(news, key=_version)):
            updates.append(Operand.update(before, after))
            paired.add(before.key)
            paired.add(after.key)

    installs = [Operand.install(u) for u in added if u.key not in paired]
    uninstalls = [Operand.uninstall(u) for u in removed if u.key not in paired]
    return [*installs, *uninstalls, *updates]


def _positions(order: Sequence[InstallableUnit]) -> dict[UnitKey, int]:
    return {unit.key: i for i, unit in enumerate(order)}


def _position_of(positions: dict[UnitKey, int], unit: InstallableUnit, state: str) -> int:
    try:
        return positions[unit.key]
    except KeyError:
        msg = f"{unit} is not part of the {state} state order"
        raise ValueError(msg) from None


def sort_operands(
    operands: Iterable[Operand],
    new_order: Sequence[InstallableUnit],
    old_order: Sequence[InstallableUnit],
) -> list[Operand]:
    """Arrange *operands* into a dependency-safe sequence.

    Installs follow *new_order*; uninstalls follow *old_order* read
    backwards (dependents are removed before what they depend on); updates
    come last in the order given. Positions are looked up by identity, so
    sorting is linear in the size of the states.

    Raises ValueError if an operand's unit is missing from its state order.
    """
    new_positions = _positions(new_order)
    old_positions = _positions(old_order)

    installs: list[tuple[int, Operand]] = []
    uninstalls: list[tuple[int, Operand]] = []
    updates: list[Operand] = []
    for op in operands:
        match op.kind:
            case OperandKind.INSTALL:
                assert op.second is not None
                installs.append((_position_of(new_positions, op.second, "new"), op))
            case OperandKind.UNINSTALL:
                assert op.first is not None
                uninstalls.append((_position_of(old_positions, op.first, "old"), op))
            case OperandKind.UPDATE:
                updates.append(op)

    installs.sort(key=lambda item: item[0])
    uninstalls.sort(key=lambda item: item[0], reverse=True)
    return [*(op for _, op in installs), *(op for _, op in uninstalls), *updates]
