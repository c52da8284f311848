"""Command: initialize the workspace database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from formgraph.commands._base import FgCommand
from formgraph.services.result import ServiceResult

if TYPE_CHECKING:
    from formgraph.commands._context import AppContext


@click.command(
    "init",
    cls=FgCommand,
    examples="""\
  formgraph init
  formgraph -c ./formgraph.toml init""",
)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create the workspace database (idempotent)."""
    workspace = app.workspace
    db_path = workspace.init()
    app.emit(
        ServiceResult(
            ok=True,
            op="init",
            data={"root": str(workspace.root), "database": str(db_path)},
        )
    )
