"""Workspace — owns the database and coordinates transactions.

The Workspace is the single dependency injected into every service. It
creates the SQLite database on first access and hands out
:class:`RecordRepository` instances bound to a transaction:

- ``transaction()`` commits on success and rolls back on any exception.
- ``transaction(readonly=True)`` always rolls back, so a preview can
  load stored records without leaving a trace.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from formgraph.infrastructure.database.engine import (
    DATA_DIRNAME,
    QueryObserver,
    init_database,
)
from formgraph.infrastructure.repository import RecordRepository

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from formgraph.config.settings import FormGraphSettings

logger = logging.getLogger(__name__)


class Workspace:
    """Database access for one formgraph workspace directory.

    Constructed once at CLI startup from :class:`FormGraphSettings`.
    Services receive it via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: FormGraphSettings) -> None:
        self._settings = settings
        self._observer = QueryObserver(echo=settings.database.echo_queries)
        self._engine: Engine | None = None

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.root

    @property
    def settings(self) -> FormGraphSettings:
        """The resolved settings for this workspace."""
        return self._settings

    @property
    def observer(self) -> QueryObserver:
        """Query counter attached to the engine."""
        return self._observer

    @property
    def engine(self) -> Engine:
        """The SQLAlchemy engine (database initialized lazily on first access)."""
        if self._engine is None:
            self._engine = init_database(
                self.root,
                self._settings.database.filename,
                observer=self._observer,
            )
        return self._engine

    @property
    def database_path(self) -> Path:
        """Location of the SQLite database file."""
        return self.root / DATA_DIRNAME / self._settings.database.filename

    def init(self) -> Path:
        """Create the database if needed and return its path."""
        _ = self.engine
        return self.database_path

    @contextmanager
    def transaction(self, *, readonly: bool = False) -> Iterator[RecordRepository]:
        """Yield a repository bound to a fresh transaction.

        Usage::

            with workspace.transaction() as repo:
                graph = GraphMaterializer(repo, policy).materialize(data)
                repo.store(graph)
                # Commits on success, rolls back on failure.
        """
        with self.engine.connect() as conn:
            trans = conn.begin()
            try:
                yield RecordRepository(conn)
            except BaseException:
                trans.rollback()
                raise
            if readonly:
                trans.rollback()
            else:
                trans.commit()

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            self._observer.detach(self._engine)
            self._engine.dispose()
            self._engine = None
            logger.debug("Closed workspace at %s", self.root)
