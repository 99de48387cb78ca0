"""Command group: compute provisioning plans."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from provplan.commands._base import ProvplanGroup, planning_options
from provplan.services.plan import PlanService

if TYPE_CHECKING:
    from provplan.commands._context import AppContext

_PLAN_EXAMPLES = """\
  provplan plan install org.example.app --repo ./repo.json
  provplan plan install org.example.app@2.1 --profile profile.json
  provplan plan uninstall org.example.app --profile profile.json
  provplan plan replace --remove org.example.app@1.0 --add org.example.app@2.0
  provplan plan become release-2024@1.0 --profile profile.json
  provplan --json plan install org.example.app"""


@click.group(cls=ProvplanGroup, examples=_PLAN_EXAMPLES)
@click.pass_obj
def plan(app: AppContext) -> None:
    """Compute install, uninstall, replace, become and revert plans."""


@plan.command(
    examples="""\
  provplan plan install org.example.app
  provplan plan install org.example.app@2.1 org.example.tools --repo ./repos
  provplan --json plan install 'org.example.app@[2.0,3.0)'"""
)
@click.argument("roots", nargs=-1, required=True)
@planning_options
@click.pass_obj
def install(
    app: AppContext,
    roots: tuple[str, ...],
    profile_path: str | None,
    repos: tuple[str, ...],
) -> None:
    """Plan installing ROOTS and everything they require.

    Each ROOT is ID, ID@VERSION or ID@RANGE; the newest match is used.
    """
    app.emit(
        PlanService(app.agent).install(
            roots, profile=profile_path, locations=app.locations(repos)
        )
    )


@plan.command(
    examples="""\
  provplan plan uninstall org.example.app --profile profile.json
  provplan -q plan uninstall org.example.app@1.0 --profile profile.json"""
)
@click.argument("roots", nargs=-1, required=True)
@planning_options
@click.pass_obj
def uninstall(
    app: AppContext,
    roots: tuple[str, ...],
    profile_path: str | None,
    repos: tuple[str, ...],
) -> None:
    """Plan removing installed ROOTS and whatever only they required."""
    app.emit(
        PlanService(app.agent).uninstall(
            roots, profile=profile_path, locations=app.locations(repos)
        )
    )


@plan.command(
    examples="""\
  provplan plan replace --remove org.example.app@1.0 --add org.example.app@2.0
  provplan plan replace --remove old.tool --add new.tool --profile profile.json"""
)
@click.option(
    "--remove", "remove_refs", multiple=True, required=True, help="Installed unit to remove."
)
@click.option("--add", "add_refs", multiple=True, required=True, help="Available unit to add.")
@planning_options
@click.pass_obj
def replace(
    app: AppContext,
    remove_refs: tuple[str, ...],
    add_refs: tuple[str, ...],
    profile_path: str | None,
    repos: tuple[str, ...],
) -> None:
    """Plan swapping installed units for available ones (e.g. an update)."""
    app.emit(
        PlanService(app.agent).replace(
            remove_refs, add_refs, profile=profile_path, locations=app.locations(repos)
        )
    )


@plan.command(
    examples="""\
  provplan plan become release-2024@1.0 --profile profile.json --repo ./profiles"""
)
@click.argument("target")
@planning_options
@click.pass_obj
def become(app: AppContext, target: str, profile_path: str | None, repos: tuple[str, ...]) -> None:
    """Plan turning the profile into the state described by profile unit TARGET."""
    app.emit(
        PlanService(app.agent).become(
            target, profile=profile_path, locations=app.locations(repos)
        )
    )


@plan.command(
    examples="""\
  provplan plan revert snapshot-17@1.0 --profile profile.json --repo ./snapshots"""
)
@click.argument("target")
@planning_options
@click.pass_obj
def revert(app: AppContext, target: str, profile_path: str | None, repos: tuple[str, ...]) -> None:
    """Plan returning the profile to the recorded state TARGET."""
    app.emit(
        PlanService(app.agent).revert(
            target, profile=profile_path, locations=app.locations(repos)
        )
    )
