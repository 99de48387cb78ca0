"""Tests for operation-specific Rich renderers."""

from provplan.output.renderers import render_quiet, render_result
from provplan.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


_A1 = {"id": "A", "version": "1.0.0"}
_A2 = {"id": "A", "version": "2.0.0"}
_B1 = {"id": "B", "version": "1.0.0"}


def _plan(*operations: dict, diagnostics: list | None = None, status: str = "ok") -> ServiceResult:
    return _ok(
        "plan_replace",
        workflow="replace",
        count=len(operations),
        status=status,
        operations=list(operations),
        diagnostics=diagnostics or [],
    )


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        result = _err("plan_uninstall", "CANNOT_UNINSTALL", "B 1.0.0 is required")
        output = render_result(result)
        assert "ERROR" in output
        assert "plan_uninstall" in output
        assert "[CANNOT_UNINSTALL]" in output
        assert "B 1.0.0 is required" in output

    def test_verbose_shows_diagnostics(self) -> None:
        diag = {
            "severity": "error",
            "code": "UNRESOLVED_REQUIREMENT",
            "message": "A needs [1.0,2.0)",
        }
        result = _err(
            "plan_install", "UNRESOLVED_REQUIREMENT", "bad", diagnostics=[diag], ref="A"
        )
        output = render_result(result, verbose=True)
        assert "UNRESOLVED_REQUIREMENT: A needs [1.0,2.0)" in output
        assert "ref: A" in output

    def test_no_error_object(self) -> None:
        output = render_result(ServiceResult(ok=False, op="resolve"))
        assert "Unknown error" in output


# ── Plan renderer ────────────────────────────────────────────────────


class TestPlanRenderer:
    def test_operations_table(self) -> None:
        output = render_result(
            _plan(
                {"kind": "install", "to": _B1},
                {"kind": "update", "from": _A1, "to": _A2},
            )
        )
        assert "status=ok" in output
        assert "Operation" in output
        assert "install" in output
        assert "update" in output
        assert "1.0.0" in output
        assert "2.0.0" in output

    def test_empty_plan(self) -> None:
        assert "No operations." in render_result(_plan())

    def test_info_diagnostics_shown_warnings_not(self) -> None:
        diagnostics = [
            {"severity": "info", "code": "NOTHING_TO_UNINSTALL", "message": "nothing"},
            {"severity": "warning", "code": "REPOSITORY_UNREADABLE", "message": "skipped"},
        ]
        output = render_result(_plan(diagnostics=diagnostics))
        assert "NOTHING_TO_UNINSTALL" in output
        assert "REPOSITORY_UNREADABLE" not in output

    def test_verbose_shows_telemetry(self) -> None:
        result = _plan().model_copy(
            update={"meta": {"telemetry": {"name": "PlanService.replace", "duration_ms": 3.5}}}
        )
        output = render_result(result, verbose=True)
        assert "PlanService.replace" in output
        assert "3.50ms" in output

    def test_failed_span_outcome_shown(self) -> None:
        telemetry = {
            "name": "PlanService.uninstall",
            "duration_ms": 1.0,
            "outcome": "CANNOT_UNINSTALL",
        }
        result = _err("plan_uninstall", "CANNOT_UNINSTALL", "no").model_copy(
            update={"meta": {"telemetry": telemetry}}
        )
        output = render_result(result, verbose=True)
        assert "PlanService.uninstall  CANNOT_UNINSTALL" in output


# ── Query renderers ──────────────────────────────────────────────────


class TestResolveRenderer:
    def test_closure_and_unresolved(self) -> None:
        result = _ok(
            "resolve",
            roots=[_A1],
            count=2,
            closure=[{**_A1, "installed": False}, {**_B1, "installed": True}],
            unresolved=[{**_A1, "requirement": "provplan.iu/C/[1.0.0,2.0.0)"}],
        )
        output = render_result(result)
        assert "2 unit(s)" in output
        assert "yes" in output
        assert "1 unresolved requirement(s)" in output
        assert "requires provplan.iu/C/[1.0.0,2.0.0)" in output


class TestUpdatesRenderer:
    def test_lists_versions(self) -> None:
        output = render_result(_ok("updates", unit=_A1, count=1, updates=[_A2]))
        assert "unit: A 1.0.0" in output
        assert "2.0.0" in output

    def test_no_updates(self) -> None:
        output = render_result(_ok("updates", unit=_A2, count=0, updates=[]))
        assert "No newer versions available." in output


class TestGenericRenderer:
    def test_unknown_op(self) -> None:
        output = render_result(_ok("custom", answer=42))
        assert "custom" in output
        assert "answer: 42" in output


# ── Quiet mode ───────────────────────────────────────────────────────


class TestQuiet:
    def test_plan_lines(self) -> None:
        result = _plan(
            {"kind": "install", "to": _B1},
            {"kind": "uninstall", "from": _B1},
            {"kind": "update", "from": _A1, "to": _A2},
        )
        assert render_quiet(result).splitlines() == [
            "install B 1.0.0",
            "uninstall B 1.0.0",
            "update A 1.0.0 -> A 2.0.0",
        ]

    def test_resolve_lines(self) -> None:
        result = _ok("resolve", closure=[_A1, _B1])
        assert render_quiet(result) == "A 1.0.0\nB 1.0.0"

    def test_updates_lines(self) -> None:
        assert render_quiet(_ok("updates", updates=[_A2])) == "A 2.0.0"

    def test_error(self) -> None:
        result = _err("plan_install", "NOT_FOUND", "No available unit matches 'Z'")
        assert render_quiet(result) == "ERROR: plan_install — No available unit matches 'Z'"

    def test_other_op(self) -> None:
        assert render_quiet(_ok("custom")) == "OK: custom"
