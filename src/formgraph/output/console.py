"""Buffered rich console used by the human-readable renderers.

Output goes to a ``StringIO`` so renderers return strings and the CLI
decides where they go (stdout or stderr). A buffer is never a terminal,
so the text carries no ANSI codes.
"""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.theme import Theme

if TYPE_CHECKING:
    from collections.abc import Callable

OUTPUT_WIDTH = 120

THEME = Theme(
    {
        # status line
        "fg.ok": "bold green",
        "fg.error": "bold red",
        "fg.warning": "bold yellow",
        "fg.op": "bold cyan",
        "fg.key": "dim",
        # record graph
        "fg.kind": "bold magenta",
        "fg.id": "bold blue",
        "fg.new": "green",
        "fg.attr": "cyan",
        "fg.null": "dim italic",
    }
)


def render_text(draw: Callable[[Console], object], *, width: int = OUTPUT_WIDTH) -> str:
    """Call *draw* with a buffered console and return what it printed."""
    buffer = StringIO()
    draw(Console(file=buffer, theme=THEME, highlight=False, width=width))
    return buffer.getvalue().rstrip("\n")
