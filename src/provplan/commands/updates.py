"""Command: updates — newer versions of an installed unit."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from provplan.commands._base import ProvplanCommand, planning_options
from provplan.services.plan import PlanService

if TYPE_CHECKING:
    from provplan.commands._context import AppContext


@click.command(
    cls=ProvplanCommand,
    examples="""\
  provplan updates org.example.app --profile profile.json
  provplan -q updates org.example.app --profile profile.json --repo ./repo.json""",
)
@click.argument("unit")
@planning_options
@click.pass_obj
def updates(app: AppContext, unit: str, profile_path: str | None, repos: tuple[str, ...]) -> None:
    """List available versions newer than installed UNIT, newest first."""
    service = PlanService(app.agent)
    app.emit(service.updates(unit, profile=profile_path, locations=app.locations(repos)))
