"""Commands: inspect stored records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from formgraph.commands._base import FgCommand
from formgraph.services.graph import GraphService

if TYPE_CHECKING:
    from formgraph.commands._context import AppContext


@click.command(
    cls=FgCommand,
    examples="""\
  formgraph show order 1
  formgraph --json show item 7""",
)
@click.argument("kind")
@click.argument("identifier")
@click.pass_obj
def show(app: AppContext, kind: str, identifier: str) -> None:
    """Display a stored record and everything nested under it."""
    app.emit(GraphService(app.workspace).show(kind, identifier))


@click.command(
    cls=FgCommand,
    examples="""\
  formgraph stats
  formgraph --json stats""",
)
@click.pass_obj
def stats(app: AppContext) -> None:
    """Count stored records per kind."""
    app.emit(GraphService(app.workspace).stats())
