"""GraphService — materialize, store, and inspect record graphs.

Wraps :class:`GraphMaterializer` in workspace transactions:

- ``materialize`` builds the graph inside a read-only transaction and
  returns its export; nothing is written.
- ``store`` builds and persists the graph in one transaction.
- ``show`` and ``stats`` read stored records back.

The materialization policy comes from ``settings.materializer``; it is
frozen, so one GraphService may serve many calls.
"""

from __future__ import annotations

import time
from typing import Any

from sqlalchemy import func, select

from formgraph.domain.errors import GraphError, MalformedDescriptor
from formgraph.domain.nodes import coerce_identifier
from formgraph.domain.records import Record, RecordCollection, count_records
from formgraph.infrastructure.database.schema import records, relations
from formgraph.services.base import BaseService
from formgraph.services.materializer import GraphMaterializer
from formgraph.services.result import ServiceResult


class GraphService(BaseService):
    """Turns submitted data into stored record graphs."""

    def _filter_empty(self, filter_empty: bool | None) -> bool:
        if filter_empty is None:
            return self._workspace.settings.materializer.filter_empty
        return filter_empty

    def _meta(self, started: float) -> dict[str, Any]:
        return {
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "queries": self._workspace.observer.count,
        }

    @staticmethod
    def _summary(graph: Record | RecordCollection) -> dict[str, Any]:
        return {
            "shape": "record" if isinstance(graph, Record) else "collection",
            "records": count_records(graph),
            "graph": graph.export(),
        }

    # ------------------------------------------------------------------
    # materialize — preview without writing
    # ------------------------------------------------------------------

    def materialize(self, data: Any, *, filter_empty: bool | None = None) -> ServiceResult:
        """Materialize *data* and return the exported graph.

        Loads (when authorized) read from the database, but the
        transaction is always rolled back.
        """
        op = "materialize"
        started = time.perf_counter()
        self._workspace.observer.reset()
        policy = self._workspace.settings.materializer
        try:
            with self._workspace.transaction(readonly=True) as repo:
                graph = GraphMaterializer(repo, policy).materialize(
                    data, filter_empty=self._filter_empty(filter_empty)
                )
        except GraphError as exc:
            return self._graph_error(op, exc)

        return ServiceResult(ok=True, op=op, data=self._summary(graph), meta=self._meta(started))

    # ------------------------------------------------------------------
    # store — materialize and persist
    # ------------------------------------------------------------------

    def store(self, data: Any, *, filter_empty: bool | None = None) -> ServiceResult:
        """Materialize *data* and persist the graph in a single transaction."""
        op = "store"
        started = time.perf_counter()
        self._workspace.observer.reset()
        policy = self._workspace.settings.materializer
        try:
            with self._workspace.transaction() as repo:
                graph = GraphMaterializer(repo, policy).materialize(
                    data, filter_empty=self._filter_empty(filter_empty)
                )
                ids = repo.store(graph)
        except GraphError as exc:
            return self._graph_error(op, exc)

        warnings: list[str] = []
        if isinstance(graph, RecordCollection) and not graph:
            warnings.append("Nothing stored: the collection is empty")

        data_out = self._summary(graph)
        data_out["ids"] = ids
        return ServiceResult(
            ok=True,
            op=op,
            data=data_out,
            warnings=warnings,
            meta=self._meta(started),
        )

    # ------------------------------------------------------------------
    # show — load one stored record
    # ------------------------------------------------------------------

    def show(self, kind: str, identifier: Any) -> ServiceResult:
        """Load a stored record by kind and identifier.

        Operator-initiated, so it does not pass through the input load gate.
        """
        op = "show"
        try:
            ident = coerce_identifier(identifier, kind=kind)
            with self._workspace.transaction(readonly=True) as repo:
                record = repo.load(kind, ident)
        except MalformedDescriptor as exc:
            return ServiceResult.failure(op, "INVALID_IDENTIFIER", str(exc), exc.detail())
        except GraphError as exc:
            return self._graph_error(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={"id": record.identifier, "kind": record.kind, "record": record.export()},
        )

    # ------------------------------------------------------------------
    # stats — stored record counts
    # ------------------------------------------------------------------

    def stats(self) -> ServiceResult:
        """Count stored records per kind, plus the relation total."""
        with self._workspace.transaction(readonly=True) as repo:
            by_kind = repo.fetch_pairs(
                select(records.c.kind, func.count())
                .group_by(records.c.kind)
                .order_by(records.c.kind)
            )
            total_relations = repo.fetch_scalar(select(func.count()).select_from(relations))

        return ServiceResult(
            ok=True,
            op="stats",
            data={
                "records": sum(by_kind.values()),
                "relations": total_relations or 0,
                "kinds": by_kind,
            },
        )
