"""Root CLI group for formgraph with global flags and command registration."""

from __future__ import annotations

import click

from formgraph import __version__
from formgraph.commands import register_commands
from formgraph.commands._base import FgGroup
from formgraph.commands._context import AppContext
from formgraph.config.settings import FormGraphSettings


@click.group(cls=FgGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="formgraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--allow-load",
    is_flag=True,
    help="Let input load stored records by identifier. Only for trusted input.",
)
@click.option("--empty-as-null", is_flag=True, help="Store empty strings as null.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    allow_load: bool,
    empty_as_null: bool,
) -> None:
    """formgraph — turn nested form data into stored record graphs."""
    ctx.ensure_object(dict)
    settings = FormGraphSettings.from_cli(
        config_path=config_path,
        allow_load=allow_load,
        empty_as_null=empty_as_null,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
