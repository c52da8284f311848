"""Commands: materialize (preview) and store (persist) a data file."""

from __future__ import annotations

import json
from typing import IO, TYPE_CHECKING, Any

import click

from formgraph.commands._base import FgCommand
from formgraph.services.graph import GraphService

if TYPE_CHECKING:
    from formgraph.commands._context import AppContext


def read_input(source: IO[str]) -> Any:
    """Parse a JSON document from *source*, raising ClickException on bad input."""
    raw = source.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        name = getattr(source, "name", "<input>")
        msg = f"Invalid JSON in {name}: {exc}"
        raise click.ClickException(msg) from exc


_filter_option = click.option(
    "--filter-empty/--keep-empty",
    default=None,
    help="Drop empty records from collections (default from config).",
)


@click.command(
    cls=FgCommand,
    examples="""\
  formgraph materialize order.json
  cat order.json | formgraph materialize -
  formgraph --empty-as-null materialize order.json --filter-empty
  formgraph --json materialize order.json""",
)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@_filter_option
@click.pass_obj
def materialize(app: AppContext, source: IO[str], filter_empty: bool | None) -> None:
    """Preview the record graph built from a JSON file (nothing is stored)."""
    data = read_input(source)
    app.emit(GraphService(app.workspace).materialize(data, filter_empty=filter_empty))


@click.command(
    cls=FgCommand,
    examples="""\
  formgraph store order.json
  formgraph --allow-load store update-order.json
  formgraph -q store order.json""",
)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@_filter_option
@click.pass_obj
def store(app: AppContext, source: IO[str], filter_empty: bool | None) -> None:
    """Build the record graph from a JSON file and persist it."""
    data = read_input(source)
    app.emit(GraphService(app.workspace).store(data, filter_empty=filter_empty))
