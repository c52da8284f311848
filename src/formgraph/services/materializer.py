"""GraphMaterializer — turn nested form data into a graph of records.

Recursive descent over the input tree. Each call classifies its node once
(see :mod:`formgraph.domain.nodes`) and dispatches:

1. **Record descriptor** → dispense a fresh record, or load a stored one
   when an ``identifier`` is present *and* loading is authorized; then
   assign every remaining attribute in input order, recursing into nested
   descriptors and collections.
2. **Collection** → materialize each member, which must yield a single
   record; optionally drop records that report ``is_empty()``.
3. **Scalar** → rejected wherever a mapping is required (the outermost
   node and collection members).

INVARIANT: Any failure aborts the whole call. No partial graph is returned.
INVARIANT: With ``allow_load`` off, a descriptor carrying an identifier
fails before the factory is consulted at all.
"""

from __future__ import annotations

import logging
from typing import Any

from formgraph.config.models import MaterializerConfig
from formgraph.domain.errors import (
    ExpectedMappingGotScalar,
    ExpectedRecordGotCollection,
    LoadDisallowed,
    MalformedDescriptor,
    MaxDepthExceeded,
    PathKey,
    format_path,
)
from formgraph.domain.nodes import (
    CollectionNode,
    RecordNode,
    ScalarNode,
    classify_node,
    coerce_identifier,
    is_scalar,
)
from formgraph.domain.records import Record, RecordCollection, RecordFactory, is_scalar_value

logger = logging.getLogger(__name__)


class GraphMaterializer:
    """Builds record graphs through a :class:`RecordFactory`.

    The policy in *config* is frozen for the lifetime of the materializer,
    so one instance can be shared between threads as long as the factory
    itself is thread-safe.
    """

    def __init__(self, factory: RecordFactory, config: MaterializerConfig | None = None) -> None:
        self._factory = factory
        self._config = config or MaterializerConfig()

    @property
    def config(self) -> MaterializerConfig:
        return self._config

    def materialize(self, data: Any, *, filter_empty: bool = False) -> Record | RecordCollection:
        """Materialize *data* into a record or an ordered record collection.

        Args:
            data: A record descriptor (mapping with ``kind``), or a mapping or
                list of descriptors.
            filter_empty: Drop collection members whose record is empty.

        Raises:
            ExpectedMappingGotScalar: *data* is not a mapping or sequence.
            ExpectedRecordGotCollection: A collection member is itself a
                collection.
            LoadDisallowed: A descriptor carries an identifier while loading
                is not authorized.
            MalformedDescriptor: A descriptor has an unusable kind,
                identifier, attribute name, or scalar value.
            MaxDepthExceeded: Nesting exceeds ``config.max_depth``.
        """
        return self._node(data, path=(), depth=0, filter_empty=filter_empty)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _node(
        self,
        data: Any,
        *,
        path: tuple[PathKey, ...],
        depth: int,
        filter_empty: bool,
    ) -> Record | RecordCollection:
        if depth >= self._config.max_depth:
            msg = f"Input nested deeper than {self._config.max_depth} levels"
            raise MaxDepthExceeded(msg, path=path)

        node = classify_node(data, path=path)
        if isinstance(node, RecordNode):
            return self._record(node, path=path, depth=depth, filter_empty=filter_empty)
        if isinstance(node, CollectionNode):
            return self._collection(node, path=path, depth=depth, filter_empty=filter_empty)
        assert isinstance(node, ScalarNode)
        msg = f"Expected a mapping or sequence but got {type(node.value).__name__}"
        raise ExpectedMappingGotScalar(msg, path=path)

    # ------------------------------------------------------------------
    # Record descriptors
    # ------------------------------------------------------------------

    def _record(
        self,
        node: RecordNode,
        *,
        path: tuple[PathKey, ...],
        depth: int,
        filter_empty: bool,
    ) -> Record:
        record = self._acquire(node, path=path)

        for name, value in node.attributes:
            attr_path = (*path, name)
            if not name:
                msg = "Attribute names must not be empty"
                raise MalformedDescriptor(msg, path=attr_path, kind=node.kind)
            if is_scalar(value):
                if not is_scalar_value(value):
                    msg = f"Unsupported value type {type(value).__name__} for {name!r}"
                    raise MalformedDescriptor(msg, path=attr_path, kind=node.kind)
                if value == "" and self._config.empty_string_as_null:
                    value = None
                record.set_attribute(name, value)
            else:
                nested = self._node(
                    value,
                    path=attr_path,
                    depth=depth + 1,
                    filter_empty=filter_empty,
                )
                record.set_attribute(name, nested)
        return record

    def _acquire(self, node: RecordNode, *, path: tuple[PathKey, ...]) -> Record:
        """Dispense a fresh record, or load a stored one behind the load gate."""
        if node.identifier is None:
            logger.debug("Dispensing %s record at %s", node.kind, format_path(path))
            return self._factory.dispense(node.kind)

        if not self._config.allow_load:
            logger.warning(
                "Rejected load request for %s record at %s", node.kind, format_path(path)
            )
            msg = (
                f"Refusing to load a stored {node.kind!r} record from input; "
                "enable load authorization to allow identifier-based loading"
            )
            raise LoadDisallowed(msg, path=path, kind=node.kind)

        identifier = coerce_identifier(node.identifier, path=path, kind=node.kind)
        logger.debug("Loading %s record %d", node.kind, identifier)
        return self._factory.load(node.kind, identifier)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _collection(
        self,
        node: CollectionNode,
        *,
        path: tuple[PathKey, ...],
        depth: int,
        filter_empty: bool,
    ) -> RecordCollection:
        records = RecordCollection()
        for key, value in node.members:
            member_path = (*path, key)
            member = self._node(
                value,
                path=member_path,
                depth=depth + 1,
                filter_empty=filter_empty,
            )
            if not isinstance(member, Record):
                msg = "Expected a record but got a nested collection"
                raise ExpectedRecordGotCollection(msg, path=member_path)
            if filter_empty and member.is_empty():
                logger.debug(
                    "Filtered empty %s record at %s", member.kind, format_path(member_path)
                )
                continue
            records.add(key, member)
        return records


def materialize(
    data: Any,
    factory: RecordFactory,
    config: MaterializerConfig | None = None,
    *,
    filter_empty: bool = False,
) -> Record | RecordCollection:
    """One-shot helper: build a :class:`GraphMaterializer` and run it."""
    return GraphMaterializer(factory, config).materialize(data, filter_empty=filter_empty)
