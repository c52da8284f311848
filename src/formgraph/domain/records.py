"""Records, record collections, and the factory protocol.

A :class:`Record` is an open-ended, attribute-bearing unit identified by
its ``kind``. Attributes live in an ordered mapping and are written only
through :meth:`Record.set_attribute`. Values are one of:

- a scalar: ``str``, ``bool``, ``None``, or a real number (``int``,
  ``float``, ``Decimal``, ``Fraction``; complex numbers are not scalars);
- a nested :class:`Record`;
- a :class:`RecordCollection` of records.

Records are never constructed by the materializer itself. They come from
a :class:`RecordFactory` (``dispense`` for fresh records, ``load`` for
stored ones).
"""

from __future__ import annotations

import numbers
from collections.abc import Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from formgraph.domain.errors import PathKey
from formgraph.domain.nodes import IDENTIFIER_KEY, KIND_KEY

RESERVED_ATTRIBUTES = frozenset({KIND_KEY, IDENTIFIER_KEY})


def is_scalar_value(value: Any) -> bool:
    """Whether *value* can be stored directly as an attribute."""
    if value is None or isinstance(value, str):
        return True
    if isinstance(value, numbers.Complex):
        return isinstance(value, numbers.Real)
    return isinstance(value, numbers.Number)


# Values a record may hold and still count as carrying no data.
_EMPTY_SCALARS: tuple[Any, ...] = ("", "0")


def is_empty_value(value: Any) -> bool:
    """Whether a single attribute value counts as empty.

    ``None``, ``""``, ``"0"``, zero, ``False`` and empty collections are
    empty. Nested records are never empty values.
    """
    if isinstance(value, Record):
        return False
    if isinstance(value, RecordCollection):
        return len(value) == 0
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in _EMPTY_SCALARS
    if isinstance(value, numbers.Number):
        return value == 0
    return False


class Record:
    """A typed record with ordered, dynamically assigned attributes."""

    __slots__ = ("_attributes", "identifier", "kind")

    def __init__(self, kind: str, identifier: int | None = None) -> None:
        self.kind = kind
        self.identifier = identifier
        self._attributes: dict[str, Any] = {}

    def __repr__(self) -> str:
        ident = f"#{self.identifier}" if self.identifier is not None else "(new)"
        return f"<Record {self.kind}{ident} {list(self._attributes)}>"

    @property
    def attributes(self) -> Mapping[str, Any]:
        """Read-only view of the attribute mapping, in assignment order."""
        return dict(self._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        """Assign *value* to attribute *name*.

        Raises:
            ValueError: If *name* is empty or reserved (``kind``/``identifier``).
            TypeError: If *value* is not a scalar, Record, or RecordCollection.
        """
        if not name:
            raise ValueError("Attribute name must not be empty")
        if name in RESERVED_ATTRIBUTES:
            raise ValueError(f"Attribute name {name!r} is reserved")
        if not (is_scalar_value(value) or isinstance(value, (Record, RecordCollection))):
            msg = f"Unsupported value for attribute {name!r}: {type(value).__name__}"
            raise TypeError(msg)
        self._attributes[name] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self._attributes[name]

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def is_empty(self) -> bool:
        """True when no attribute carries meaningful data.

        The persisted identifier is not an attribute and does not count.
        """
        return all(is_empty_value(v) for v in self._attributes.values())

    def export(self) -> dict[str, Any]:
        """Export the record and its nested graph as plain dicts."""
        out: dict[str, Any] = {KIND_KEY: self.kind, IDENTIFIER_KEY: self.identifier}
        for name, value in self._attributes.items():
            if isinstance(value, (Record, RecordCollection)):
                out[name] = value.export()
            else:
                out[name] = value
        return out


class RecordCollection(Mapping[PathKey, Record]):
    """Ordered mapping from original input keys to records."""

    def __init__(self) -> None:
        self._members: dict[PathKey, Record] = {}

    def __repr__(self) -> str:
        return f"<RecordCollection {list(self._members)}>"

    def add(self, key: PathKey, record: Record) -> None:
        if not isinstance(record, Record):
            msg = f"Collection members must be records, got {type(record).__name__}"
            raise TypeError(msg)
        self._members[key] = record

    def __getitem__(self, key: PathKey) -> Record:
        return self._members[key]

    def __iter__(self) -> Iterator[PathKey]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def export(self) -> list[dict[str, Any]] | dict[str, dict[str, Any]]:
        """Export members as a list when keyed 0..n-1, else as a dict.

        Dict keys are stringified so the export is JSON-compatible.
        """
        keys = list(self._members)
        if keys == list(range(len(keys))):
            return [record.export() for record in self._members.values()]
        return {str(key): record.export() for key, record in self._members.items()}


@runtime_checkable
class RecordFactory(Protocol):
    """Collaborator that produces records for the materializer."""

    def dispense(self, kind: str) -> Record:
        """Return a fresh, empty record of *kind*."""
        ...

    def load(self, kind: str, identifier: int) -> Record:
        """Return the stored record of *kind* with *identifier*.

        Failure behavior (not found, access denied) belongs to the
        implementation and propagates to the caller unchanged.
        """
        ...


def count_records(graph: Record | RecordCollection) -> int:
    """Count every record reachable from *graph*, nested ones included."""
    if isinstance(graph, RecordCollection):
        return sum(count_records(record) for record in graph.values())
    total = 1
    for value in graph.attributes.values():
        if isinstance(value, (Record, RecordCollection)):
            total += count_records(value)
    return total
