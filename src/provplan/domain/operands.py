"""Operands — the single install/uninstall/update actions of a plan.

An operand is a pair ``(first, second)``:

- ``(None, unit)`` installs *unit*
- ``(unit, None)`` uninstalls *unit*
- ``(old, new)``   updates *old* to *new*

INVARIANT: An operand never has both sides empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from provplan.domain.units import InstallableUnit


class OperandKind(StrEnum):
    """What an operand does to the profile."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class Operand:
    """A transition of one unit slot from *first* to *second*."""

    first: InstallableUnit | None
    second: InstallableUnit | None

    def __post_init__(self) -> None:
        if self.first is None and self.second is None:
            msg = "Operand must have at least one side"
            raise ValueError(msg)

    @classmethod
    def install(cls, unit: InstallableUnit) -> Operand:
        return cls(None, unit)

    @classmethod
    def uninstall(cls, unit: InstallableUnit) -> Operand:
        return cls(unit, None)

    @classmethod
    def update(cls, old: InstallableUnit, new: InstallableUnit) -> Operand:
        return cls(old, new)

    @property
    def kind(self) -> OperandKind:
        if self.first is None:
            return OperandKind.INSTALL
        if self.second is None:
            return OperandKind.UNINSTALL
        return OperandKind.UPDATE

    def reversed(self) -> Operand:
        """The operand that undoes this one."""
        return Operand(self.second, self.first)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": str(self.kind)}
        if self.first is not None:
            data["from"] = {"id": self.first.id, "version": str(self.first.version)}
        if self.second is not None:
            data["to"] = {"id": self.second.id, "version": str(self.second.version)}
        return data

    def __str__(self) -> str:
        match self.kind:
            case OperandKind.INSTALL:
                return f"install {self.second}"
            case OperandKind.UNINSTALL:
                return f"uninstall {self.first}"
            case _:
                return f"update {self.first} -> {self.second}"
