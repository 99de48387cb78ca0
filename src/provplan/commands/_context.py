"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy agent initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import click

from provplan.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from provplan.config.settings import ProvplanSettings
    from provplan.infrastructure.agent import ProvisioningAgent
    from provplan.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The agent is created on first use so ``--help`` and ``--version`` never
    trigger plugin discovery.
    """

    def __init__(self, settings: ProvplanSettings) -> None:
        self.settings = settings
        self._agent: ProvisioningAgent | None = None

        from provplan.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from provplan.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def agent(self) -> ProvisioningAgent:
        """The provisioning agent (created lazily on first access)."""
        if self._agent is None:
            from provplan.infrastructure.agent import ProvisioningAgent

            self._agent = ProvisioningAgent(self.settings)
            self._agent.init_event_bus(sync=self.settings.sync)
        return self._agent

    @staticmethod
    def locations(repos: Sequence[str]) -> list[str] | None:
        """``--repo`` values, or None to fall back to the configured locations."""
        return list(repos) or None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.

        Pending plugin events are flushed first; a failure count joins the
        result's warnings. Outside ``--json`` warnings go to stderr so they
        don't pollute piped output.
        """
        failed_events = self._agent.close() if self._agent is not None else 0
        if failed_events:
            warnings = [*result.warnings, f"{failed_events} plugin event(s) failed"]
            result = result.model_copy(update={"warnings": warnings})

        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        click.echo(output, err=not result.ok)
        if not settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        if not result.ok:
            raise SystemExit(1)
