"""Subcommand modules for formgraph.

Provides register_commands() which uses deferred imports to keep
``formgraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from formgraph.commands.init_cmd import init_cmd
    from formgraph.commands.materialize import materialize, store
    from formgraph.commands.show import show, stats

    cli.add_command(init_cmd)
    cli.add_command(materialize)
    cli.add_command(store)
    cli.add_command(show)
    cli.add_command(stats)
