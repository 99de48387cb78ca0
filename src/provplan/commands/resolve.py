"""Command: resolve — inspect the closure of a set of roots."""

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
  provplan resolve org.example.app --repo ./repo.json
  provplan --json resolve org.example.app@2.0 --profile profile.json""",
)
@click.argument("roots", nargs=-1, required=True)
@planning_options
@click.pass_obj
def resolve(
    app: AppContext,
    roots: tuple[str, ...],
    profile_path: str | None,
    repos: tuple[str, ...],
) -> None:
    """Show every unit ROOTS pull in, and any requirement nothing satisfies."""
    service = PlanService(app.agent)
    app.emit(service.resolve(roots, profile=profile_path, locations=app.locations(repos)))
