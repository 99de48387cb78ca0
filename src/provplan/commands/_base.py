"""Custom Click base classes with --examples support.

ProvplanCommand and ProvplanGroup accept an ``examples`` parameter. When
``--examples`` is passed, the command prints usage examples and exits, so
``--help`` stays concise.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class ProvplanCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class ProvplanGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = ProvplanCommand`` so all subcommands accept the
    ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = ProvplanCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def planning_options(func: F) -> F:
    """Add ``--profile`` and repeated ``--repo`` to a planning command."""
    func = click.option(
        "--repo",
        "repos",
        multiple=True,
        metavar="LOCATION",
        help="Repository location (path, file:// URL, memory:NAME). Repeatable. "
        "Defaults to [repositories] locations from provplan.toml.",
    )(func)
    func = click.option(
        "--profile",
        "profile_path",
        default=None,
        type=click.Path(dir_okay=False),
        help="Installed-profile JSON document. Defaults to [profile] path, else empty.",
    )(func)
    return func
