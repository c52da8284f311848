"""SQLAlchemy Core table definitions for the formgraph database.

Records keep their scalar attributes in a JSON object column. Nested
records and record collections are stored as rows in ``relations``, one
row per (parent, attribute, member), ordered by ``position``.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

records = Table(
    "records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", Text, nullable=False),
    Column("attributes", Text, nullable=False, default="{}", server_default="{}"),  # JSON
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

relations = Table(
    "relations",
    metadata,
    Column("parent_id", Integer, ForeignKey("records.id"), nullable=False),
    Column("attribute", Text, nullable=False),
    # JSON-encoded collection key; NULL for a single nested record
    Column("member_key", Text),
    Column("position", Integer, nullable=False),
    Column("child_id", Integer, ForeignKey("records.id"), nullable=False),
    UniqueConstraint("parent_id", "position"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_records_kind", records.c.kind)
Index("ix_relations_parent", relations.c.parent_id)
Index("ix_relations_child", relations.c.child_id)
