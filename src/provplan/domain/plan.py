"""Provisioning plans and the diagnostics that decide their status.

Diagnostics are values, not exceptions: every workflow accumulates them
and the plan's status is derived from the worst severity present.

INVARIANT: ERROR and CANCELLED plans carry no operations. WARNING plans may
(e.g. a skipped repository), so long as nothing worse was reported.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

from provplan.domain.operands import Operand, OperandKind
from provplan.domain.units import InstallableUnit, RequiredCapability


class Severity(IntEnum):
    """Diagnostic severity, ordered so that ``max()`` picks the worst."""

    INFO = 0
    WARNING = 1
    ERROR = 2
    CANCEL = 3


class DiagnosticCode(StrEnum):
    """Every kind of problem a planning workflow can report."""

    ALREADY_INSTALLED = "ALREADY_INSTALLED"
    NOTHING_TO_UNINSTALL = "NOTHING_TO_UNINSTALL"
    UNRESOLVED_REQUIREMENT = "UNRESOLVED_REQUIREMENT"
    CANNOT_UNINSTALL = "CANNOT_UNINSTALL"
    REPOSITORY_UNREADABLE = "REPOSITORY_UNREADABLE"
    UNEXPECTED_UNIT = "UNEXPECTED_UNIT"
    CANCELLED = "CANCELLED"


class PlanStatus(StrEnum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    CANCELLED = "cancelled"


_STATUS_BY_SEVERITY: dict[Severity, PlanStatus] = {
    Severity.INFO: PlanStatus.OK,
    Severity.WARNING: PlanStatus.WARNING,
    Severity.ERROR: PlanStatus.ERROR,
    Severity.CANCEL: PlanStatus.CANCELLED,
}


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One reported problem, optionally naming the unit and requirement at fault."""

    severity: Severity
    code: DiagnosticCode
    message: str
    unit: InstallableUnit | None = None
    requirement: RequiredCapability | None = None

    @classmethod
    def already_installed(cls, unit: InstallableUnit) -> Diagnostic:
        return cls(
            Severity.WARNING,
            DiagnosticCode.ALREADY_INSTALLED,
            f"{unit} is already installed",
            unit=unit,
        )

    @classmethod
    def nothing_to_uninstall(cls) -> Diagnostic:
        return cls(
            Severity.INFO,
            DiagnosticCode.NOTHING_TO_UNINSTALL,
            "None of the requested units are installed",
        )

    @classmethod
    def unresolved(cls, unit: InstallableUnit, requirement: RequiredCapability) -> Diagnostic:
        return cls(
            Severity.ERROR,
            DiagnosticCode.UNRESOLVED_REQUIREMENT,
            f"{unit} requires {requirement}, which no available unit provides",
            unit=unit,
            requirement=requirement,
        )

    @classmethod
    def cannot_uninstall(
        cls, unit: InstallableUnit, required_by: Iterable[InstallableUnit] = ()
    ) -> Diagnostic:
        dependents = ", ".join(str(u) for u in required_by)
        reason = f"required by {dependents}" if dependents else "other installed units require it"
        return cls(
            Severity.ERROR,
            DiagnosticCode.CANNOT_UNINSTALL,
            f"{unit} cannot be uninstalled: {reason}",
            unit=unit,
        )

    @classmethod
    def repository_unreadable(cls, location: str, reason: str) -> Diagnostic:
        return cls(
            Severity.WARNING,
            DiagnosticCode.REPOSITORY_UNREADABLE,
            f"Repository {location} could not be read: {reason}",
        )

    @classmethod
    def unexpected_unit(cls, unit: InstallableUnit) -> Diagnostic:
        return cls(
            Severity.ERROR,
            DiagnosticCode.UNEXPECTED_UNIT,
            f"{unit} does not describe a profile",
            unit=unit,
        )

    @classmethod
    def cancelled(cls) -> Diagnostic:
        return cls(Severity.CANCEL, DiagnosticCode.CANCELLED, "Planning was cancelled")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "severity": self.severity.name.lower(),
            "code": str(self.code),
            "message": self.message,
        }
        if self.unit is not None:
            data["unit"] = {"id": self.unit.id, "version": str(self.unit.version)}
        if self.requirement is not None:
            data["requirement"] = str(self.requirement)
        return data


def status_of(diagnostics: Iterable[Diagnostic]) -> PlanStatus:
    """Status implied by the worst diagnostic; OK when there are none."""
    worst = max((d.severity for d in diagnostics), default=Severity.INFO)
    return _STATUS_BY_SEVERITY[worst]


@dataclass(frozen=True, slots=True)
class ProvisioningPlan:
    """An ordered operand sequence plus the status that says whether to apply it."""

    status: PlanStatus
    diagnostics: tuple[Diagnostic, ...] = ()
    operations: tuple[Operand, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.status in (PlanStatus.ERROR, PlanStatus.CANCELLED) and self.operations:
            msg = f"A {self.status} plan cannot carry operations"
            raise ValueError(msg)

    @classmethod
    def of(
        cls,
        operations: Iterable[Operand] = (),
        diagnostics: Iterable[Diagnostic] = (),
    ) -> ProvisioningPlan:
        """A plan carrying *operations*; status follows *diagnostics*."""
        diags = tuple(diagnostics)
        return cls(status_of(diags), diags, tuple(operations))

    @classmethod
    def from_diagnostics(cls, diagnostics: Iterable[Diagnostic]) -> ProvisioningPlan:
        """A plan with no operations whose status follows *diagnostics*."""
        diags = tuple(diagnostics)
        return cls(status_of(diags), diags)

    @classmethod
    def cancelled(cls) -> ProvisioningPlan:
        return cls(PlanStatus.CANCELLED, (Diagnostic.cancelled(),))

    @property
    def is_ok(self) -> bool:
        return self.status is PlanStatus.OK

    @property
    def is_applicable(self) -> bool:
        """Whether an execution layer may apply this plan."""
        return self.status in (PlanStatus.OK, PlanStatus.WARNING)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity >= Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def _of_kind(self, kind: OperandKind) -> list[Operand]:
        return [op for op in self.operations if op.kind is kind]

    @property
    def installs(self) -> list[Operand]:
        return self._of_kind(OperandKind.INSTALL)

    @property
    def uninstalls(self) -> list[Operand]:
        return self._of_kind(OperandKind.UNINSTALL)

    @property
    def updates(self) -> list[Operand]:
        return self._of_kind(OperandKind.UPDATE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "operations": [op.to_dict() for op in self.operations],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
