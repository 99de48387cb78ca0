"""Root CLI group for provplan with global flags and command registration."""

from __future__ import annotations

import click
from pydantic import ValidationError

from provplan import __version__
from provplan.commands import register_commands
from provplan.commands._base import ProvplanGroup
from provplan.commands._context import AppContext
from provplan.config.settings import ConfigError, ProvplanSettings

_CLI_EXAMPLES = """\
  provplan plan install org.example.app --repo ./repo.json
  provplan --json plan uninstall org.example.app --profile profile.json
  provplan -v resolve org.example.app
  provplan updates org.example.app --profile profile.json"""


@click.group(cls=ProvplanGroup, examples=_CLI_EXAMPLES, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="provplan")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Force synchronous plugin event dispatch.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    sync: bool,
) -> None:
    """provplan — provisioning planner for installable units."""
    try:
        settings = ProvplanSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            sync=sync,
        )
    except (ConfigError, ValidationError) as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
