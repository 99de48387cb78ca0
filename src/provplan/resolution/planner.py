"""Planner — the install / uninstall / replace / become / revert workflows.

Each workflow is a short pipeline:

    gather universe -> expand closure -> order old & new -> diff -> sort

No workflow mutates the profile it is given, and no state survives between
calls, so one Planner can serve concurrent callers.

INVARIANT: Workflows return a ProvisioningPlan for every outcome. Problems
are diagnostics on the plan; only malformed input raises.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum

import structlog

from provplan.domain.operands import Operand
from provplan.domain.plan import Diagnostic, ProvisioningPlan
from provplan.domain.units import InstallableUnit, Profile
from provplan.domain.versions import VersionRange
from provplan.resolution.expander import ExpansionResult, expand
from provplan.resolution.gatherer import (
    GatherResult,
    MergePolicy,
    RepositoryGatherer,
    RepositorySource,
)
from provplan.resolution.graph import RequirementGraph
from provplan.resolution.monitor import NullMonitor, PlanningCancelled, ProgressMonitor
from provplan.resolution.operations import generate_operands, sort_operands
from provplan.resolution.ordering import order_units

log = structlog.get_logger(__name__)


class Workflow(StrEnum):
    INSTALL = "install"
    UNINSTALL = "uninstall"
    REPLACE = "replace"
    BECOME = "become"
    REVERT = "revert"


def compute_operations(
    old_state: Sequence[InstallableUnit],
    new_state: Sequence[InstallableUnit],
) -> list[Operand]:
    """Order both states, diff them, and sort the operands for execution."""
    old_order = order_units(old_state)
    new_order = order_units(new_state)
    return sort_operands(generate_operands(old_order, new_order), new_order, old_order)


class Planner:
    """Computes provisioning plans against repositories reached through *source*.

    Parameters:
        source: Loads repository locations (see RepositorySource).
        merge_policy: Duplicate-identity rule applied while gathering.
        parallel_loads: Load repositories on a thread pool.
        max_workers: Thread pool size for parallel loads.
    """

    def __init__(
        self,
        source: RepositorySource,
        *,
        merge_policy: MergePolicy = MergePolicy.FIDELITY,
        parallel_loads: bool = False,
        max_workers: int = 4,
    ) -> None:
        self._gatherer = RepositoryGatherer(
            source,
            merge_policy=merge_policy,
            parallel=parallel_loads,
            max_workers=max_workers,
        )

    # ------------------------------------------------------------------
    # install
    # ------------------------------------------------------------------

    def install_plan(
        self,
        roots: Sequence[InstallableUnit],
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ProvisioningPlan:
        """Plan adding *roots* (and everything they need) to *profile*.

        Any root that is already installed aborts the workflow with an
        ALREADY_INSTALLED warning and no operations.
        """

        def run(monitor: ProgressMonitor) -> ProvisioningPlan:
            present = [Diagnostic.already_installed(r) for r in roots if profile.contains(r)]
            if present:
                return ProvisioningPlan.from_diagnostics(present)

            installed = profile.installed()
            gathered = self._gatherer.gather([*roots, *installed], locations, monitor=monitor)
            expansion = expand(roots, installed, gathered.units, installed, monitor=monitor)
            diagnostics = [*gathered.diagnostics, *expansion.diagnostics]
            if not expansion.ok:
                return ProvisioningPlan.from_diagnostics(diagnostics)
            operations = compute_operations(installed, expansion.closure)
            return ProvisioningPlan.of(operations, diagnostics)

        return self._run(Workflow.INSTALL, run, monitor)

    # ------------------------------------------------------------------
    # uninstall
    # ------------------------------------------------------------------

    def uninstall_plan(
        self,
        roots: Sequence[InstallableUnit],
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ProvisioningPlan:
        """Plan removing *roots* and whatever only they needed.

        Fails with CANNOT_UNINSTALL when a remaining unit still requires a
        root.
        """

        def run(monitor: ProgressMonitor) -> ProvisioningPlan:
            to_remove = [r for r in roots if profile.contains(r)]
            if not to_remove:
                return ProvisioningPlan.from_diagnostics([Diagnostic.nothing_to_uninstall()])

            installed = profile.installed()
            remaining = self._shrink(to_remove, installed, monitor)
            gathered = self._gatherer.gather(to_remove, locations, monitor=monitor)
            final = expand(None, remaining, gathered.units, installed, monitor=monitor)
            return self._finish_removal(to_remove, installed, gathered, final)

        return self._run(Workflow.UNINSTALL, run, monitor)

    # ------------------------------------------------------------------
    # replace
    # ------------------------------------------------------------------

    def replace_plan(
        self,
        to_uninstall: Sequence[InstallableUnit],
        to_install: Sequence[InstallableUnit],
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ProvisioningPlan:
        """Plan swapping *to_uninstall* for *to_install* in one step.

        Used for updates: replacing ``A 1.0`` with ``A 2.0`` yields a single
        update operand.
        """

        def run(monitor: ProgressMonitor) -> ProvisioningPlan:
            to_remove = [r for r in to_uninstall if profile.contains(r)]
            installed = profile.installed()
            remaining = self._shrink(to_remove, installed, monitor)
            gathered = self._gatherer.gather(to_install, locations, monitor=monitor)
            final = expand(to_install, remaining, gathered.units, installed, monitor=monitor)
            return self._finish_removal(to_remove, installed, gathered, final)

        return self._run(Workflow.REPLACE, run, monitor)

    # ------------------------------------------------------------------
    # become / revert
    # ------------------------------------------------------------------

    def become_plan(
        self,
        target: InstallableUnit,
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ProvisioningPlan:
        """Plan turning *profile* into the state described by *target*.

        *target* must carry the profile marker property. It describes the
        desired state and is not itself part of it.
        """
        return self._run(
            Workflow.BECOME, lambda m: self._become(target, profile, locations, m), monitor
        )

    def revert_plan(
        self,
        previous: InstallableUnit,
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ProvisioningPlan:
        """Plan returning *profile* to a previously recorded state."""
        return self._run(
            Workflow.REVERT, lambda m: self._become(previous, profile, locations, m), monitor
        )

    def _become(
        self,
        target: InstallableUnit,
        profile: Profile,
        locations: Sequence[str] | None,
        monitor: ProgressMonitor,
    ) -> ProvisioningPlan:
        if not target.is_profile_unit:
            return ProvisioningPlan.from_diagnostics([Diagnostic.unexpected_unit(target)])

        installed = profile.installed()
        gathered = self._gatherer.gather([target, *installed], locations, monitor=monitor)
        expansion = expand([target], None, gathered.units, monitor=monitor)
        diagnostics = [*gathered.diagnostics, *expansion.diagnostics]
        if not expansion.ok:
            return ProvisioningPlan.from_diagnostics(diagnostics)

        new_state = [u for u in expansion.closure if u != target]
        return ProvisioningPlan.of(compute_operations(installed, new_state), diagnostics)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def closure(
        self,
        roots: Sequence[InstallableUnit],
        profile: Profile,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> ExpansionResult:
        """Closure of *roots* on top of *profile*, without diffing or sorting.

        Raises PlanningCancelled if *monitor* is cancelled.
        """
        monitor = monitor or NullMonitor()
        installed = profile.installed()
        gathered = self._gatherer.gather([*roots, *installed], locations, monitor=monitor)
        expansion = expand(roots, installed, gathered.units, installed, monitor=monitor)
        return ExpansionResult(
            expansion.closure, (*gathered.diagnostics, *expansion.diagnostics)
        )

    def find_units(
        self,
        unit_id: str,
        version_range: VersionRange | None = None,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> GatherResult:
        """Available units with *unit_id* inside *version_range*, newest first.

        Raises PlanningCancelled if *monitor* is cancelled.
        """
        rng = version_range or VersionRange.ANY
        gathered = self._gatherer.gather((), locations, monitor=monitor or NullMonitor())
        found = [u for u in gathered.units if u.id == unit_id and rng.includes(u.version)]
        found.sort(key=lambda u: u.version, reverse=True)
        return GatherResult(tuple(found), gathered.diagnostics)

    def updates_for(
        self,
        unit: InstallableUnit,
        locations: Sequence[str] | None = None,
        *,
        monitor: ProgressMonitor | None = None,
    ) -> GatherResult:
        """Units with the same id as *unit* and a newer version, newest first.

        Raises PlanningCancelled if *monitor* is cancelled.
        """
        newer = VersionRange(minimum=unit.version, include_min=False)
        return self.find_units(unit.id, newer, locations, monitor=monitor)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _shrink(
        self,
        roots: Sequence[InstallableUnit],
        installed: list[InstallableUnit],
        monitor: ProgressMonitor,
    ) -> list[InstallableUnit]:
        """Installed units left after removing the closure of *roots* within the profile."""
        removal = expand(roots, None, installed, installed, monitor=monitor)
        doomed = set(removal.closure)
        return [u for u in installed if u not in doomed]

    @staticmethod
    def _finish_removal(
        roots: Sequence[InstallableUnit],
        installed: list[InstallableUnit],
        gathered: GatherResult,
        final: ExpansionResult,
    ) -> ProvisioningPlan:
        diagnostics = list(gathered.diagnostics)
        new_state = set(final.closure)
        still_required = [r for r in roots if r in new_state]
        if still_required:
            graph = RequirementGraph(final.closure)
            blocked = [
                Diagnostic.cannot_uninstall(r, [u for u in graph.dependents_of(r) if u != r])
                for r in still_required
            ]
            return ProvisioningPlan.from_diagnostics([*diagnostics, *blocked])
        diagnostics.extend(final.diagnostics)
        if not final.ok:
            return ProvisioningPlan.from_diagnostics(diagnostics)
        return ProvisioningPlan.of(compute_operations(installed, final.closure), diagnostics)

    @staticmethod
    def _run(
        workflow: Workflow,
        run: Callable[[ProgressMonitor], ProvisioningPlan],
        monitor: ProgressMonitor | None,
    ) -> ProvisioningPlan:
        try:
            plan = run(monitor or NullMonitor())
        except PlanningCancelled:
            plan = ProvisioningPlan.cancelled()
        log.debug(
            "plan.computed",
            workflow=str(workflow),
            status=str(plan.status),
            operations=len(plan.operations),
            diagnostics=len(plan.diagnostics),
        )
        return plan
