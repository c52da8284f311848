"""Click classes shared by every formgraph command.

A command may carry an ``examples`` block. ``--examples`` is eager, so
``formgraph store --examples`` prints it without needing a SOURCE.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


def _echo_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    examples = textwrap.dedent(getattr(ctx.command, "examples", None) or "").strip("\n")
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(textwrap.indent(examples, "  "))
    ctx.exit(0)


def _examples_option() -> click.Option:
    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=_echo_examples,
        help="Show usage examples and exit.",
    )


class FgCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option())


class FgGroup(click.Group):
    """Group whose ``@group.command()`` subcommands are :class:`FgCommand`."""

    command_class = FgCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option())
