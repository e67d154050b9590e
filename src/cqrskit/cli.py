"""Root CLI group for cqrskit with global flags and command registration."""

from __future__ import annotations

import click

from cqrskit import __version__
from cqrskit.commands import register_commands
from cqrskit.commands._context import AppContext
from cqrskit.config.settings import CqrsSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="cqrskit")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """cqrskit — inspect and try out command and query definitions."""
    settings = CqrsSettings.from_cli(
        config_path=config_path,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings, json_output=json_output)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
