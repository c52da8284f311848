"""Operation-specific Rich renderers for ServiceResult.

Each renderer draws on a buffered Rich console supplied by
:func:`~formgraph.output.console.render_text`.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from formgraph.output.console import render_text

if TYPE_CHECKING:
    from rich.console import Console

    from formgraph.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult as plain text for a human reader."""
    if not result.ok:
        return render_text(lambda console: _render_error(result, console, verbose=verbose))
    renderer = _OP_RENDERERS.get(result.op, _render_generic)
    return render_text(lambda console: renderer(result, console, verbose=verbose))


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        assert result.error is not None
        return f"ERROR: {result.op} — {result.error.message}"

    ids = result.data.get("ids")
    if isinstance(ids, list):
        return "\n".join(str(i) for i in ids)
    if ids is not None:
        return str(ids)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="fg.ok")
    op = Text(f"  {result.op}", style="fg.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fg.key")
    style = "fg.id" if key == "id" or key.endswith("_id") else ""
    console.print(k + Text(str(value), style=style))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text(f"  warning: {warning}", style="fg.warning"))


def _record_label(record: dict[str, Any]) -> Text:
    label = Text(str(record.get("kind", "?")), style="fg.kind")
    identifier = record.get("identifier")
    if identifier is None:
        label.append(" (new)", style="fg.new")
    else:
        label.append(f" #{identifier}", style="fg.id")
    return label


def _scalar_text(value: Any) -> Text:
    if value is None:
        return Text("null", style="fg.null")
    if isinstance(value, str):
        return Text(json.dumps(value, ensure_ascii=False))
    return Text(str(value).lower() if isinstance(value, bool) else str(value))


def _add_record(tree: Tree, record: dict[str, Any]) -> None:
    """Attach a record's attributes (and nested records) below *tree*."""
    for name, value in record.items():
        if name in ("kind", "identifier"):
            continue
        if isinstance(value, dict) and "kind" in value:
            branch = tree.add(Text(f"{name}: ", style="fg.attr") + _record_label(value))
            _add_record(branch, value)
        elif isinstance(value, (list, dict)):
            _add_collection(tree.add(Text(f"{name}", style="fg.attr")), value)
        else:
            tree.add(Text(f"{name}: ", style="fg.attr") + _scalar_text(value))


def _add_collection(tree: Tree, members: list[Any] | dict[str, Any]) -> None:
    pairs = enumerate(members) if isinstance(members, list) else members.items()
    for key, member in pairs:
        branch = tree.add(Text(f"[{key}] ", style="fg.key") + _record_label(member))
        _add_record(branch, member)


def _graph_tree(graph: Any, shape: str) -> Tree:
    if shape == "record":
        tree = Tree(_record_label(graph))
        _add_record(tree, graph)
    else:
        count = len(graph)
        tree = Tree(Text(f"collection ({count} record{'s' if count != 1 else ''})"))
        _add_collection(tree, graph)
    return tree


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    assert err is not None
    msg = err.message
    label = Text("ERROR", style="fg.error")
    op = Text(f"  {result.op}", style="fg.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Graph renderers ───────────────────────────────────────────────────


def _render_graph(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render materialize/store results as a record tree."""
    _status_line(console, result)
    _field(console, "records", result.data.get("records", 0))
    if "ids" in result.data:
        _field(console, "ids", result.data["ids"])
    _render_warnings(console, result)
    console.print(_graph_tree(result.data.get("graph", {}), result.data.get("shape", "record")))
    if verbose:
        _render_meta(console, result)


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    console.print(_graph_tree(result.data.get("record", {}), "record"))


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "records", result.data.get("records", 0))
    _field(console, "relations", result.data.get("relations", 0))
    kinds: dict[str, int] = result.data.get("kinds", {})
    if kinds:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Kind", style="fg.kind")
        table.add_column("Records", justify="right")
        for kind, count in kinds.items():
            table.add_row(kind, str(count))
        console.print(table)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "materialize": _render_graph,
    "store": _render_graph,
    "show": _render_show,
    "stats": _render_stats,
}
