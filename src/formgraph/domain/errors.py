"""Graph materialization errors.

Every failure aborts the current materialization call. Errors carry the
attribute path of the offending node and, where known, the record kind,
so callers can report malformed or hostile input precisely.
"""

from __future__ import annotations

from typing import Any

PathKey = str | int


def format_path(path: tuple[PathKey, ...]) -> str:
    """Render an attribute path as ``order.ownItem[1].name``.

    Examples:
        >>> format_path(("ownItem", 1, "name"))
        'ownItem[1].name'
        >>> format_path(())
        '<root>'
    """
    if not path:
        return "<root>"
    out = ""
    for key in path:
        if isinstance(key, int):
            out += f"[{key}]"
        elif key == "":
            out += '[""]'
        elif out:
            out += f".{key}"
        else:
            out = str(key)
    return out


class GraphError(Exception):
    """Base class for all materialization failures."""

    code = "GRAPH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        path: tuple[PathKey, ...] = (),
        kind: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.kind = kind

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.message} (at {format_path(self.path)})"

    def detail(self) -> dict[str, Any]:
        """Structured context for ServiceError payloads."""
        detail: dict[str, Any] = {"path": format_path(self.path)}
        if self.kind is not None:
            detail["kind"] = self.kind
        return detail


class LoadDisallowed(GraphError):
    """A descriptor asked to load a stored record while loading is disabled."""

    code = "LOAD_DISALLOWED"


class ExpectedRecordGotCollection(GraphError):
    """A collection member materialized into a nested collection."""

    code = "EXPECTED_RECORD"


class ExpectedMappingGotScalar(GraphError):
    """A node that must be a mapping or sequence was a scalar."""

    code = "EXPECTED_MAPPING"


class MalformedDescriptor(GraphError):
    """A record descriptor carries an unusable ``kind`` or ``identifier``."""

    code = "MALFORMED_DESCRIPTOR"


class MaxDepthExceeded(GraphError):
    """Input nesting is deeper than the configured maximum."""

    code = "MAX_DEPTH_EXCEEDED"


class RecordNotFound(GraphError):
    """The loader has no stored record for the requested kind and identifier."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: int) -> None:
        super().__init__(f"No stored {kind!r} record with identifier {identifier}", kind=kind)
        self.identifier = identifier

    def detail(self) -> dict[str, Any]:
        detail = super().detail()
        detail["identifier"] = self.identifier
        return detail
