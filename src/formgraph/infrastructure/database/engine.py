"""Database engine setup for SQLite with WAL mode.

The DB is stored at ``{root}/.formgraph/{filename}``. SQLAlchemy Core
(not ORM) is used: records are open-ended attribute bags, so there is no
fixed class to map tables onto.

Every executed statement fires SQLAlchemy's ``after_cursor_execute``
event. :class:`QueryObserver` subscribes to it to log and count queries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from formgraph.infrastructure.database.schema import metadata

logger = logging.getLogger(__name__)

DATA_DIRNAME = ".formgraph"


class QueryObserver:
    """Counts and logs every statement executed on an engine."""

    def __init__(self, *, echo: bool = False) -> None:
        self.echo = echo
        self.count = 0
        self.last_statement: str | None = None

    def __call__(
        self,
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        self.count += 1
        self.last_statement = statement
        if self.echo:
            logger.info("query executed: %s %r", statement, parameters)
        else:
            logger.debug("query executed: %s", statement)

    def attach(self, engine: Engine) -> None:
        event.listen(engine, "after_cursor_execute", self)

    def detach(self, engine: Engine) -> None:
        if event.contains(engine, "after_cursor_execute", self):
            event.remove(engine, "after_cursor_execute", self)

    def reset(self) -> int:
        """Zero the counter, returning the previous count."""
        count, self.count = self.count, 0
        return count


def create_db_engine(db_path: Path | str, *, observer: QueryObserver | None = None) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    *db_path* may be ``":memory:"`` for a throwaway in-memory database.
    """
    url = "sqlite://" if str(db_path) == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    if observer is not None:
        observer.attach(engine)
    return engine


def init_database(
    root: Path,
    filename: str = "formgraph.db",
    *,
    observer: QueryObserver | None = None,
) -> Engine:
    """Initialize the database at ``{root}/.formgraph/{filename}``.

    Creates the data directory and all tables from :data:`schema.metadata`.
    Safe to call again on an existing workspace.

    Returns the engine ready for use.
    """
    data_dir = root / DATA_DIRNAME
    data_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(data_dir / filename, observer=observer)
    metadata.create_all(engine)
    logger.debug("Database ready at %s", data_dir / filename)
    return engine
