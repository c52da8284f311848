"""RecordRepository — SQL-backed record factory, loader, and store.

Implements the :class:`~formgraph.domain.records.RecordFactory` protocol
the materializer consumes, plus ``store()`` for persisting a materialized
graph. All statements run on the ``Connection`` the repository is bound
to; the caller (normally :meth:`Workspace.transaction`) owns the
transaction.

The ``fetch_*`` helpers are the thin query pass-throughs used by the
reporting services.
"""

from __future__ import annotations

import json
import logging
import numbers
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from formgraph.domain.errors import RecordNotFound
from formgraph.domain.records import Record, RecordCollection
from formgraph.infrastructure.database.schema import records, relations

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.sql import Executable

logger = logging.getLogger(__name__)


def _number_to_json(value: Any) -> float:
    """Serialize Decimal and Fraction attributes; they load back as floats."""
    if isinstance(value, numbers.Number):
        return float(value)
    raise TypeError(f"Cannot store {type(value).__name__} values")


class RecordRepository:
    """Record persistence bound to a single connection."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    # ------------------------------------------------------------------
    # Factory / loader
    # ------------------------------------------------------------------

    def dispense(self, kind: str) -> Record:
        """Return a fresh, unsaved record of *kind*."""
        return Record(kind)

    def load(self, kind: str, identifier: int) -> Record:
        """Load a stored record and its nested graph.

        Raises:
            RecordNotFound: No record of *kind* has *identifier*.
        """
        return self._load(kind, identifier, seen={})

    def _load(self, kind: str, identifier: int, *, seen: dict[int, Record]) -> Record:
        if identifier in seen:
            return seen[identifier]

        row = self.conn.execute(
            select(records.c.attributes).where(
                records.c.id == identifier,
                records.c.kind == kind,
            )
        ).first()
        if row is None:
            raise RecordNotFound(kind, identifier)

        record = Record(kind, identifier)
        seen[identifier] = record
        for name, value in json.loads(row.attributes).items():
            record.set_attribute(name, value)

        rows = self.conn.execute(
            select(
                relations.c.attribute,
                relations.c.member_key,
                relations.c.child_id,
                records.c.kind,
            )
            .join(records, records.c.id == relations.c.child_id)
            .where(relations.c.parent_id == identifier)
            .order_by(relations.c.position)
        ).fetchall()

        collections: dict[str, RecordCollection] = {}
        for rel in rows:
            child = self._load(rel.kind, rel.child_id, seen=seen)
            if rel.member_key is None:
                record.set_attribute(rel.attribute, child)
                continue
            collection = collections.get(rel.attribute)
            if collection is None:
                collection = collections[rel.attribute] = RecordCollection()
                record.set_attribute(rel.attribute, collection)
            collection.add(json.loads(rel.member_key), child)
        return record

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store(self, graph: Record | RecordCollection) -> int | list[int]:
        """Persist *graph* depth-first and return the stored identifier(s).

        New records are inserted and receive their identifier; loaded
        records are updated in place. Relation rows of every stored record
        are rewritten to match its current nested attributes. Empty
        collections leave no relation rows behind.
        """
        saved: dict[int, int] = {}
        if isinstance(graph, RecordCollection):
            return [self._store(record, saved) for record in graph.values()]
        return self._store(graph, saved)

    def _store(self, record: Record, saved: dict[int, int]) -> int:
        marker = id(record)
        if marker in saved:
            return saved[marker]

        scalars: dict[str, Any] = {}
        nested: list[tuple[str, Record | RecordCollection]] = []
        for name, value in record.attributes.items():
            if isinstance(value, (Record, RecordCollection)):
                nested.append((name, value))
            else:
                scalars[name] = value

        now = datetime.now(UTC).isoformat()
        payload = json.dumps(scalars, default=_number_to_json)
        if record.identifier is None:
            record.identifier = self.execute_insert(
                insert(records).values(
                    kind=record.kind,
                    attributes=payload,
                    created=now,
                    modified=now,
                )
            )
            logger.debug("Inserted %s record %d", record.kind, record.identifier)
        else:
            result = self.conn.execute(
                update(records)
                .where(records.c.id == record.identifier, records.c.kind == record.kind)
                .values(attributes=payload, modified=now)
            )
            if result.rowcount == 0:
                raise RecordNotFound(record.kind, record.identifier)
            logger.debug("Updated %s record %d", record.kind, record.identifier)

        saved[marker] = record.identifier
        self.conn.execute(delete(relations).where(relations.c.parent_id == record.identifier))

        position = 0
        for name, value in nested:
            if isinstance(value, Record):
                members: list[tuple[str | None, Record]] = [(None, value)]
            else:
                members = [(json.dumps(key), member) for key, member in value.items()]
            for member_key, member in members:
                child_id = self._store(member, saved)
                self.conn.execute(
                    insert(relations).values(
                        parent_id=record.identifier,
                        attribute=name,
                        member_key=member_key,
                        position=position,
                        child_id=child_id,
                    )
                )
                position += 1
        return record.identifier

    # ------------------------------------------------------------------
    # Query pass-throughs
    # ------------------------------------------------------------------

    def execute(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a statement without fetching; return the affected row count."""
        return self.conn.execute(statement, params or {}).rowcount

    def execute_insert(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute an INSERT and return the new row's primary key."""
        result = self.conn.execute(statement, params or {})
        return int(result.inserted_primary_key[0])

    def fetch_all(
        self, statement: Executable, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """All result rows as dicts."""
        return [dict(row) for row in self.conn.execute(statement, params or {}).mappings()]

    def fetch_row(
        self, statement: Executable, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """The first result row as a dict, or None."""
        row = self.conn.execute(statement, params or {}).mappings().first()
        return dict(row) if row is not None else None

    def fetch_column(
        self, statement: Executable, params: dict[str, Any] | None = None
    ) -> list[Any]:
        """The first column of every result row."""
        return list(self.conn.execute(statement, params or {}).scalars())

    def fetch_pairs(
        self, statement: Executable, params: dict[str, Any] | None = None
    ) -> dict[Any, Any]:
        """Key/value pairs from the first two columns of every row.

        Raises:
            ValueError: The result has fewer than two columns.
        """
        result = self.conn.execute(statement, params or {})
        if len(result.keys()) < 2:
            raise ValueError("fetch_pairs needs at least two result columns")
        return {row[0]: row[1] for row in result}

    def fetch_scalar(self, statement: Executable, params: dict[str, Any] | None = None) -> Any:
        """The first column of the first row, or None."""
        return self.conn.execute(statement, params or {}).scalar()
