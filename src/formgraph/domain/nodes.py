"""Input node classification.

Untrusted input arrives as plain nested mappings and sequences. Each node
is classified exactly once into the closed union
``ScalarNode | RecordNode | CollectionNode`` by looking for the reserved
``kind`` key:

- a mapping with ``kind`` describes one record;
- any other mapping or a list/tuple is a collection of records;
- everything else (strings included) is a scalar.

INVARIANT: ``kind`` and ``identifier`` never appear in
:attr:`RecordNode.attributes`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from formgraph.domain.errors import MalformedDescriptor, PathKey

KIND_KEY = "kind"
IDENTIFIER_KEY = "identifier"

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class ScalarNode:
    """A terminal value: string, number, boolean, or None."""

    value: Any


@dataclass(frozen=True)
class RecordNode:
    """A record descriptor with its reserved keys already extracted.

    *identifier* is the raw submitted value; it is only coerced once the
    load gate has been passed. ``None`` means no identifier was given.
    """

    kind: str
    identifier: Any = None
    attributes: tuple[tuple[str, Any], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CollectionNode:
    """An ordered group of members keyed by their original input keys."""

    members: tuple[tuple[PathKey, Any], ...] = field(default_factory=tuple)


InputNode = ScalarNode | RecordNode | CollectionNode


def coerce_identifier(
    value: Any,
    *,
    path: tuple[PathKey, ...] = (),
    kind: str | None = None,
) -> int:
    """Coerce a submitted identifier to an integer.

    Accepts integers, integral floats, and decimal integer strings
    (surrounding whitespace ignored). Booleans and anything else raise
    :class:`MalformedDescriptor`.
    """
    if isinstance(value, bool):
        raise MalformedDescriptor("Identifier must be an integer, got bool", path=path, kind=kind)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    msg = f"Identifier must be an integer, got {value!r}"
    raise MalformedDescriptor(msg, path=path, kind=kind)


def classify_node(value: Any, *, path: tuple[PathKey, ...] = ()) -> InputNode:
    """Classify a raw input value into one of the three node shapes."""
    if isinstance(value, Mapping):
        if KIND_KEY in value:
            return _record_node(value, path)
        return CollectionNode(members=tuple(value.items()))
    if is_scalar(value):
        return ScalarNode(value=value)
    return CollectionNode(members=tuple(enumerate(value)))


def _record_node(value: Mapping[Any, Any], path: tuple[PathKey, ...]) -> RecordNode:
    kind = value[KIND_KEY]
    if not isinstance(kind, str) or not kind.strip():
        msg = f"Record kind must be a non-empty string, got {kind!r}"
        raise MalformedDescriptor(msg, path=path)

    attributes = tuple(
        (str(key), item)
        for key, item in value.items()
        if key not in (KIND_KEY, IDENTIFIER_KEY)
    )
    return RecordNode(kind=kind, identifier=value.get(IDENTIFIER_KEY), attributes=attributes)


def is_scalar(value: Any) -> bool:
    """Whether *value* would classify as a :class:`ScalarNode`."""
    return not isinstance(value, (Mapping, list, tuple))
