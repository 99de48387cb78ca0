"""Subcommand modules for provplan.

Provides register_commands() which uses deferred imports to keep
``provplan --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``plan`` group and the standalone query commands."""
    from provplan.commands.plan import plan
    from provplan.commands.resolve import resolve
    from provplan.commands.updates import updates

    cli.add_command(plan)
    cli.add_command(resolve)
    cli.add_command(updates)
