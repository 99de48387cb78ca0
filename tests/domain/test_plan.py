"""Tests for Diagnostic, status derivation and ProvisioningPlan."""

from __future__ import annotations

import pytest

from provplan.domain.operands import Operand
from provplan.domain.plan import (
    Diagnostic,
    DiagnosticCode,
    PlanStatus,
    ProvisioningPlan,
    Severity,
    status_of,
)
from tests.conftest import iu, req


class TestStatusOf:
    def test_no_diagnostics_is_ok(self) -> None:
        assert status_of([]) is PlanStatus.OK

    def test_info_is_ok(self) -> None:
        assert status_of([Diagnostic.nothing_to_uninstall()]) is PlanStatus.OK

    def test_worst_severity_wins(self) -> None:
        diags = [
            Diagnostic.repository_unreadable("memory:x", "gone"),
            Diagnostic.cannot_uninstall(iu("B")),
        ]
        assert status_of(diags) is PlanStatus.ERROR
        assert status_of([*diags, Diagnostic.cancelled()]) is PlanStatus.CANCELLED

    def test_warning(self) -> None:
        assert status_of([Diagnostic.already_installed(iu("A"))]) is PlanStatus.WARNING


class TestDiagnostic:
    def test_cannot_uninstall_names_dependents(self) -> None:
        diag = Diagnostic.cannot_uninstall(iu("B"), [iu("A"), iu("C", "2.0")])
        assert diag.message == "B 1.0.0 cannot be uninstalled: required by A 1.0.0, C 2.0.0"

    def test_cannot_uninstall_without_dependents(self) -> None:
        diag = Diagnostic.cannot_uninstall(iu("B"))
        assert diag.message.endswith("other installed units require it")

    def test_unresolved_carries_unit_and_requirement(self) -> None:
        requirement = req("B", "[1.0,2.0)")
        diag = Diagnostic.unresolved(iu("A"), requirement)
        assert diag.severity is Severity.ERROR
        assert diag.code is DiagnosticCode.UNRESOLVED_REQUIREMENT
        assert diag.unit == iu("A")
        assert diag.requirement == requirement

    def test_to_dict(self) -> None:
        data = Diagnostic.unresolved(iu("A"), req("B")).to_dict()
        assert data["severity"] == "error"
        assert data["code"] == "UNRESOLVED_REQUIREMENT"
        assert data["unit"] == {"id": "A", "version": "1.0.0"}
        assert "B" in data["requirement"]

    def test_to_dict_without_unit(self) -> None:
        data = Diagnostic.cancelled().to_dict()
        assert data == {
            "severity": "cancel",
            "code": "CANCELLED",
            "message": "Planning was cancelled",
        }


class TestProvisioningPlan:
    def test_of_derives_status(self) -> None:
        plan = ProvisioningPlan.of([Operand.install(iu("A"))])
        assert plan.is_ok
        assert plan.is_applicable
        assert plan.installs == [Operand.install(iu("A"))]

    def test_warning_plan_keeps_operations(self) -> None:
        plan = ProvisioningPlan.of(
            [Operand.install(iu("A"))],
            [Diagnostic.repository_unreadable("memory:x", "gone")],
        )
        assert plan.status is PlanStatus.WARNING
        assert plan.is_applicable
        assert len(plan.operations) == 1
        assert len(plan.warnings) == 1

    def test_error_plan_cannot_carry_operations(self) -> None:
        with pytest.raises(ValueError):
            ProvisioningPlan.of(
                [Operand.install(iu("A"))], [Diagnostic.cannot_uninstall(iu("B"))]
            )

    def test_from_diagnostics(self) -> None:
        plan = ProvisioningPlan.from_diagnostics([Diagnostic.cannot_uninstall(iu("B"))])
        assert plan.status is PlanStatus.ERROR
        assert not plan.is_applicable
        assert plan.operations == ()
        assert [d.code for d in plan.errors] == [DiagnosticCode.CANNOT_UNINSTALL]

    def test_cancelled(self) -> None:
        plan = ProvisioningPlan.cancelled()
        assert plan.status is PlanStatus.CANCELLED
        assert plan.errors[0].code is DiagnosticCode.CANCELLED

    def test_kind_filters(self) -> None:
        a1, a2, b = iu("A", "1.0"), iu("A", "2.0"), iu("B")
        plan = ProvisioningPlan.of(
            [Operand.install(b), Operand.uninstall(a1), Operand.update(a1, a2)]
        )
        assert plan.installs == [Operand.install(b)]
        assert plan.uninstalls == [Operand.uninstall(a1)]
        assert plan.updates == [Operand.update(a1, a2)]

    def test_to_dict(self) -> None:
        plan = ProvisioningPlan.of([Operand.install(iu("A"))])
        assert plan.to_dict() == {
            "status": "ok",
            "operations": [{"kind": "install", "to": {"id": "A", "version": "1.0.0"}}],
            "diagnostics": [],
        }
