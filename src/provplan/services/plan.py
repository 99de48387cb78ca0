"""PlanService — provisioning workflows and queries behind the CLI.

Turns unit references (``id``, ``id@version``, ``id@[range]``) into units,
loads the profile, calls the planner, and maps the resulting plan onto a
ServiceResult:

- OK / WARNING plans are ok results; warnings carry the WARNING diagnostics.
- ERROR plans fail with the code of the first error diagnostic.
- CANCELLED plans fail with ``CANCELLED``.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from provplan.domain.errors import DocumentError
from provplan.domain.plan import PlanStatus, ProvisioningPlan, Severity
from provplan.domain.units import InstallableUnit, Profile
from provplan.domain.versions import VersionRange
from provplan.resolution.monitor import PlanningCancelled, ProgressMonitor
from provplan.resolution.planner import Workflow
from provplan.services._helpers import parse_unit_ref, unit_summary
from provplan.services.base import BaseService
from provplan.services.result import ServiceResult
from provplan.services.telemetry import trace_span, traced

type ProfileArg = Profile | Path | str | None


class _Rejected(Exception):
    """Input problem detected before planning; becomes a failed ServiceResult."""

    def __init__(self, code: str, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail


class PlanService(BaseService):
    """Computes provisioning plans for a profile against repositories."""

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    @traced
    def install(
        self,
        refs: Sequence[str],
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Plan installing the units named by *refs* (newest match for each)."""
        op = "plan_install"
        try:
            current = self._profile(profile)
            roots = [self._available(ref, locations, monitor) for ref in refs]
        except _Rejected as exc:
            return self._rejected(op, exc)
        except PlanningCancelled:
            return self._plan_result(op, Workflow.INSTALL, ProvisioningPlan.cancelled())

        with trace_span("planner") as span:
            plan = self._agent.planner.install_plan(roots, current, locations, monitor=monitor)
            if span:
                span.annotate("operations", len(plan.operations))
        return self._plan_result(op, Workflow.INSTALL, plan)

    @traced
    def uninstall(
        self,
        refs: Sequence[str],
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Plan removing the installed units named by *refs*.

        A reference matching nothing installed is reported as a warning;
        when none match, the plan is empty with NOTHING_TO_UNINSTALL.
        """
        op = "plan_uninstall"
        warnings: list[str] = []
        try:
            current = self._profile(profile)
            roots = self._installed_matches(refs, current, warnings)
        except _Rejected as exc:
            return self._rejected(op, exc)

        with trace_span("planner"):
            plan = self._agent.planner.uninstall_plan(roots, current, locations, monitor=monitor)
        return self._plan_result(op, Workflow.UNINSTALL, plan, warnings)

    @traced
    def replace(
        self,
        remove_refs: Sequence[str],
        add_refs: Sequence[str],
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Plan swapping installed units for available ones in a single plan."""
        op = "plan_replace"
        warnings: list[str] = []
        try:
            current = self._profile(profile)
            to_remove = self._installed_matches(remove_refs, current, warnings, strict=True)
            to_add = [self._available(ref, locations, monitor) for ref in add_refs]
        except _Rejected as exc:
            return self._rejected(op, exc)
        except PlanningCancelled:
            return self._plan_result(op, Workflow.REPLACE, ProvisioningPlan.cancelled())

        with trace_span("planner"):
            plan = self._agent.planner.replace_plan(
                to_remove, to_add, current, locations, monitor=monitor
            )
        return self._plan_result(op, Workflow.REPLACE, plan, warnings)

    @traced
    def become(
        self,
        target_ref: str,
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Plan turning the profile into the state described by a profile unit."""
        return self._become(Workflow.BECOME, target_ref, profile, locations, monitor)

    @traced
    def revert(
        self,
        target_ref: str,
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Plan returning the profile to a previously recorded profile unit."""
        return self._become(Workflow.REVERT, target_ref, profile, locations, monitor)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def resolve(
        self,
        refs: Sequence[str],
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Closure of *refs* on top of the profile, with unresolved requirements.

        Unresolved requirements are reported, not failed on: the point of
        the query is to inspect them.
        """
        op = "resolve"
        try:
            current = self._profile(profile)
            roots = [self._available(ref, locations, monitor) for ref in refs]
            with trace_span("closure") as span:
                expansion = self._agent.planner.closure(
                    roots, current, locations, monitor=monitor
                )
                if span:
                    span.annotate("units", len(expansion))
        except _Rejected as exc:
            return self._rejected(op, exc)
        except PlanningCancelled:
            return ServiceResult.failure(op, "CANCELLED", "Planning was cancelled")

        installed = set(current.installed())
        closure = [
            {**unit_summary(u), "installed": u in installed} for u in expansion.closure
        ]
        unresolved = [
            {**unit_summary(unit), "requirement": str(req)} for unit, req in expansion.unresolved
        ]
        warnings = [d.message for d in expansion.diagnostics if d.severity >= Severity.WARNING]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "roots": [unit_summary(r) for r in roots],
                "count": len(closure),
                "closure": closure,
                "unresolved": unresolved,
            },
            warnings=warnings,
        )

    @traced
    def updates(
        self,
        ref: str,
        *,
        profile: ProfileArg = None,
        locations: Sequence[str] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> ServiceResult:
        """Newer available versions of an installed unit, newest first."""
        op = "updates"
        warnings: list[str] = []
        try:
            current = self._profile(profile)
            matches = self._installed_matches([ref], current, warnings, strict=True)
            unit = max(matches, key=lambda u: u.version)
            found = self._agent.planner.updates_for(unit, locations, monitor=monitor)
        except _Rejected as exc:
            return self._rejected(op, exc)
        except PlanningCancelled:
            return ServiceResult.failure(op, "CANCELLED", "Planning was cancelled")

        warnings.extend(d.message for d in found.diagnostics)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "unit": unit_summary(unit),
                "count": len(found.units),
                "updates": [unit_summary(u) for u in found.units],
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _become(
        self,
        workflow: Workflow,
        target_ref: str,
        profile: ProfileArg,
        locations: Sequence[str] | None,
        monitor: ProgressMonitor | None,
    ) -> ServiceResult:
        op = f"plan_{workflow}"
        try:
            current = self._profile(profile)
            target = self._available(target_ref, locations, monitor)
        except _Rejected as exc:
            return self._rejected(op, exc)
        except PlanningCancelled:
            return self._plan_result(op, workflow, ProvisioningPlan.cancelled())

        planner = self._agent.planner
        run = planner.revert_plan if workflow is Workflow.REVERT else planner.become_plan
        with trace_span("planner"):
            plan = run(target, current, locations, monitor=monitor)
        return self._plan_result(op, workflow, plan)

    def _profile(self, profile: ProfileArg) -> Profile:
        if isinstance(profile, Profile):
            return profile
        with trace_span("load_profile"):
            try:
                return self._agent.load_profile(profile)
            except DocumentError as exc:
                raise _Rejected("INVALID_INPUT", str(exc)) from exc

    def _available(
        self,
        ref: str,
        locations: Sequence[str] | None,
        monitor: ProgressMonitor | None,
    ) -> InstallableUnit:
        """Newest available unit matching *ref*. Raises PlanningCancelled."""
        unit_id, rng = _parse(ref)
        with trace_span("find_units", ref=ref) as span:
            found = self._agent.planner.find_units(unit_id, rng, locations, monitor=monitor)
            if span:
                span.annotate("matches", len(found.units))
        if not found.units:
            raise _Rejected(
                "NOT_FOUND",
                f"No available unit matches {ref!r}",
                ref=ref,
                skipped=[d.message for d in found.diagnostics],
            )
        return found.units[0]

    @staticmethod
    def _installed_matches(
        refs: Sequence[str],
        profile: Profile,
        warnings: list[str],
        *,
        strict: bool = False,
    ) -> list[InstallableUnit]:
        matches: list[InstallableUnit] = []
        for ref in refs:
            unit_id, rng = _parse(ref)
            found = profile.find(unit_id, rng)
            if not found:
                if strict:
                    raise _Rejected("NOT_FOUND", f"No installed unit matches {ref!r}", ref=ref)
                warnings.append(f"No installed unit matches {ref!r}")
            matches.extend(u for u in found if u not in matches)
        return matches

    def _plan_result(
        self,
        op: str,
        workflow: Workflow,
        plan: ProvisioningPlan,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        warnings = [*(warnings or []), *(d.message for d in plan.warnings)]
        payload = plan.to_dict()
        self._dispatch_event(
            "post_plan",
            {
                "workflow": str(workflow),
                "status": payload["status"],
                "operations": payload["operations"],
                "diagnostics": payload["diagnostics"],
            },
            warnings,
        )

        if plan.status is PlanStatus.CANCELLED:
            return ServiceResult.failure(op, "CANCELLED", "Planning was cancelled")
        if plan.status is PlanStatus.ERROR:
            first = plan.errors[0]
            return ServiceResult.failure(
                op,
                str(first.code),
                first.message,
                detail={"diagnostics": payload["diagnostics"]},
                warnings=warnings,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"workflow": str(workflow), "count": len(plan.operations), **payload},
            warnings=warnings,
        )

    @staticmethod
    def _rejected(op: str, exc: _Rejected) -> ServiceResult:
        return ServiceResult.failure(op, exc.code, exc.message, detail=exc.detail)


def _parse(ref: str) -> tuple[str, VersionRange]:
    try:
        return parse_unit_ref(ref)
    except ValueError as exc:
        raise _Rejected("INVALID_INPUT", str(exc), ref=ref) from exc
