"""Tests for GraphMaterializer — recursive graph construction and its policies."""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import Any

import pytest

from formgraph.config.models import MaterializerConfig
from formgraph.domain.errors import (
    ExpectedMappingGotScalar,
    ExpectedRecordGotCollection,
    LoadDisallowed,
    MalformedDescriptor,
    MaxDepthExceeded,
    RecordNotFound,
)
from formgraph.domain.records import Record, RecordCollection
from formgraph.services.materializer import GraphMaterializer, materialize

LOCKED = MaterializerConfig()
TRUSTED = MaterializerConfig().with_load_authorization(True)
NULLING = MaterializerConfig().with_empty_string_normalization(True)


def _structure(graph: Record | RecordCollection) -> Any:
    """Export without identifiers so graphs from separate runs compare equal."""

    def strip(value: Any) -> Any:
        if isinstance(value, dict):
            return {k: strip(v) for k, v in value.items() if k != "identifier"}
        if isinstance(value, list):
            return [strip(v) for v in value]
        return value

    return strip(graph.export())


# ---------------------------------------------------------------------------
# Record descriptors
# ---------------------------------------------------------------------------


class TestRecordDescriptor:
    def test_dispenses_once_with_kind(self, factory) -> None:
        record = GraphMaterializer(factory).materialize({"kind": "order", "note": "rush"})
        assert factory.calls == [("dispense", "order")]
        assert isinstance(record, Record)
        assert record.kind == "order"
        assert dict(record.attributes) == {"note": "rush"}

    def test_kind_never_becomes_attribute(self, factory) -> None:
        record = GraphMaterializer(factory).materialize({"kind": "order"})
        assert "kind" not in record
        assert record.attributes == {}

    def test_scalars_set_verbatim(self, factory) -> None:
        data = {"kind": "order", "qty": 3, "price": 1.5, "paid": False, "memo": None}
        record = GraphMaterializer(factory).materialize(data)
        assert dict(record.attributes) == {"qty": 3, "price": 1.5, "paid": False, "memo": None}

    def test_attribute_order_follows_input(self, factory) -> None:
        data = {"kind": "order", "z": 1, "a": 2, "m": 3}
        record = GraphMaterializer(factory).materialize(data)
        assert list(record.attributes) == ["z", "a", "m"]

    def test_nested_record_attribute(self, factory) -> None:
        data = {"kind": "order", "customer": {"kind": "customer", "name": "Bill"}}
        record = GraphMaterializer(factory).materialize(data)
        customer = record["customer"]
        assert isinstance(customer, Record)
        assert customer.kind == "customer"
        assert customer["name"] == "Bill"
        assert factory.calls == [("dispense", "order"), ("dispense", "customer")]

    def test_nested_collection_attribute(self, factory) -> None:
        data = {
            "kind": "order",
            "sharedCoupon": [{"kind": "coupon", "code": "123"}, {"kind": "coupon", "code": "9"}],
        }
        record = GraphMaterializer(factory).materialize(data)
        coupons = record["sharedCoupon"]
        assert isinstance(coupons, RecordCollection)
        assert [c["code"] for c in coupons.values()] == ["123", "9"]

    def test_relation_names_are_not_interpreted(self, factory) -> None:
        """own*/shared* prefixes are left for the persistence layer."""
        data = {"kind": "page", "anything": [{"kind": "a"}], "ownX": {"kind": "b"}}
        record = GraphMaterializer(factory).materialize(data)
        assert isinstance(record["anything"], RecordCollection)
        assert isinstance(record["ownX"], Record)


# ---------------------------------------------------------------------------
# Load gate
# ---------------------------------------------------------------------------


class TestLoadGate:
    def test_identifier_disallowed_by_default(self, factory) -> None:
        with pytest.raises(LoadDisallowed) as info:
            GraphMaterializer(factory).materialize({"kind": "order", "identifier": 5})
        assert factory.calls == []
        assert info.value.kind == "order"

    def test_disallowed_before_identifier_is_parsed(self, factory) -> None:
        with pytest.raises(LoadDisallowed):
            GraphMaterializer(factory).materialize({"kind": "order", "identifier": "junk"})
        assert factory.calls == []

    def test_nested_identifier_disallowed(self, factory) -> None:
        data = {"kind": "order", "ownItem": [{"kind": "item"}, {"kind": "item", "identifier": 2}]}
        with pytest.raises(LoadDisallowed) as info:
            GraphMaterializer(factory).materialize(data)
        assert info.value.path == ("ownItem", 1)
        assert ("load", "item", 2) not in factory.calls

    def test_load_when_authorized(self, factory) -> None:
        stored = factory.seed("order", 5, status="new")
        record = GraphMaterializer(factory, TRUSTED).materialize(
            {"kind": "order", "identifier": "5", "status": "paid"}
        )
        assert record is stored
        assert factory.calls == [("load", "order", 5)]
        assert record["status"] == "paid"
        assert record.identifier == 5

    def test_identifier_is_not_an_attribute(self, factory) -> None:
        factory.seed("order", 5)
        record = GraphMaterializer(factory, TRUSTED).materialize({"kind": "order", "identifier": 5})
        assert "identifier" not in record

    def test_loader_errors_propagate(self, factory) -> None:
        with pytest.raises(RecordNotFound):
            GraphMaterializer(factory, TRUSTED).materialize({"kind": "order", "identifier": 99})

    def test_malformed_identifier_when_authorized(self, factory) -> None:
        with pytest.raises(MalformedDescriptor):
            GraphMaterializer(factory, TRUSTED).materialize({"kind": "order", "identifier": "x"})
        assert factory.calls == []

    def test_null_identifier_dispenses(self, factory) -> None:
        GraphMaterializer(factory).materialize({"kind": "order", "identifier": None})
        assert factory.calls == [("dispense", "order")]


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


class TestCollections:
    def test_bare_sequence_positional_keys(self, factory) -> None:
        graph = GraphMaterializer(factory).materialize([{"kind": "a"}, {"kind": "b"}])
        assert isinstance(graph, RecordCollection)
        assert list(graph) == [0, 1]
        assert [r.kind for r in graph.values()] == ["a", "b"]

    def test_named_keys_preserved(self, factory) -> None:
        data = {"x": {"kind": "a"}, "7": {"kind": "b"}, "first": {"kind": "c"}}
        graph = GraphMaterializer(factory).materialize(data)
        assert list(graph) == ["x", "7", "first"]

    def test_collection_of_collections_rejected(self, factory) -> None:
        with pytest.raises(ExpectedRecordGotCollection) as info:
            GraphMaterializer(factory).materialize([[{"kind": "a"}]])
        assert info.value.path == (0,)

    def test_nested_collection_member_rejected(self, factory) -> None:
        data = {"kind": "order", "ownItem": {"a": {"kind": "item"}, "b": {"c": {"kind": "item"}}}}
        with pytest.raises(ExpectedRecordGotCollection) as info:
            GraphMaterializer(factory).materialize(data)
        assert info.value.path == ("ownItem", "b")

    def test_scalar_member_rejected(self, factory) -> None:
        with pytest.raises(ExpectedMappingGotScalar) as info:
            GraphMaterializer(factory).materialize({"kind": "order", "ownItem": ["pen"]})
        assert info.value.path == ("ownItem", 0)

    def test_empty_collection(self, factory) -> None:
        graph = GraphMaterializer(factory).materialize([])
        assert isinstance(graph, RecordCollection)
        assert len(graph) == 0


class TestFilterEmpty:
    DATA = [
        {"kind": "item", "name": "pen"},
        {"kind": "item", "name": ""},
        {"kind": "item"},
        {"kind": "item", "name": "ink"},
    ]

    def test_filter_removes_exactly_empty_records(self, factory) -> None:
        graph = GraphMaterializer(factory).materialize(self.DATA, filter_empty=True)
        assert list(graph) == [0, 3]

    def test_no_filter_keeps_all(self, factory) -> None:
        graph = GraphMaterializer(factory).materialize(self.DATA, filter_empty=False)
        assert list(graph) == [0, 1, 2, 3]

    def test_filter_applies_to_nested_collections(self, factory) -> None:
        data = {"kind": "order", "ownItem": self.DATA}
        record = GraphMaterializer(factory).materialize(data, filter_empty=True)
        assert list(record["ownItem"]) == [0, 3]

    def test_filter_never_drops_the_root_record(self, factory) -> None:
        record = GraphMaterializer(factory).materialize({"kind": "order"}, filter_empty=True)
        assert isinstance(record, Record)


# ---------------------------------------------------------------------------
# Empty-string normalization
# ---------------------------------------------------------------------------


class TestEmptyStringNormalization:
    def test_off_keeps_empty_string(self, factory) -> None:
        record = GraphMaterializer(factory).materialize({"kind": "item", "name": ""})
        assert record["name"] == ""

    def test_on_converts_to_none(self, factory) -> None:
        record = GraphMaterializer(factory, NULLING).materialize({"kind": "item", "name": ""})
        assert record["name"] is None

    @pytest.mark.parametrize("value", [0, False, "0", " ", None])
    def test_on_leaves_other_falsy_values(self, factory, value: object) -> None:
        record = GraphMaterializer(factory, NULLING).materialize({"kind": "item", "v": value})
        assert record["v"] == value
        assert type(record["v"]) is type(value)

    def test_order_scenario(self, factory) -> None:
        data = {
            "kind": "order",
            "ownItem": [{"kind": "item", "name": "pen"}, {"kind": "item", "name": ""}],
        }
        order = GraphMaterializer(factory, NULLING).materialize(data)
        items = order["ownItem"]
        assert isinstance(items, RecordCollection)
        assert list(items) == [0, 1]
        assert items[0]["name"] == "pen"
        assert items[1]["name"] is None


# ---------------------------------------------------------------------------
# Top level, depth, idempotence
# ---------------------------------------------------------------------------


class TestTopLevel:
    @pytest.mark.parametrize("value", ["order", 3, None, True, ""])
    def test_scalar_rejected(self, factory, value: object) -> None:
        with pytest.raises(ExpectedMappingGotScalar) as info:
            GraphMaterializer(factory).materialize(value)
        assert info.value.path == ()
        assert factory.calls == []


class TestAttributeValidation:
    def test_empty_attribute_name(self, factory) -> None:
        data = {"kind": "order", "ownItem": [{"kind": "item", "": "x"}]}
        with pytest.raises(MalformedDescriptor) as exc_info:
            GraphMaterializer(factory).materialize(data)
        assert exc_info.value.path == ("ownItem", 0, "")
        assert exc_info.value.kind == "item"
        assert "ownItem[0][\"\"]" in str(exc_info.value)

    def test_non_string_attribute_name_is_stringified(self, factory) -> None:
        graph = GraphMaterializer(factory).materialize({"kind": "order", 3: "x"})
        assert graph["3"] == "x"

    @pytest.mark.parametrize("value", [Decimal("1.5"), Fraction(1, 3), Decimal(0)])
    def test_other_real_numbers_are_scalars(self, factory, value: object) -> None:
        graph = GraphMaterializer(factory).materialize({"kind": "product", "price": value})
        assert graph["price"] == value

    @pytest.mark.parametrize("value", [1j, b"raw", object()])
    def test_unsupported_scalar(self, factory, value: object) -> None:
        data = {"kind": "product", "price": value}
        with pytest.raises(MalformedDescriptor, match="Unsupported value type") as exc_info:
            GraphMaterializer(factory).materialize(data)
        assert exc_info.value.path == ("price",)
        assert exc_info.value.kind == "product"

    def test_zero_decimal_counts_as_empty(self, factory) -> None:
        data = [{"kind": "line", "qty": Decimal("0")}, {"kind": "line", "qty": Decimal("2")}]
        graph = GraphMaterializer(factory).materialize(data, filter_empty=True)
        assert list(graph) == [1]


class TestDepthLimit:
    def test_exceeding_max_depth_fails(self, factory) -> None:
        config = MaterializerConfig(max_depth=3)
        data = {"kind": "a", "b": {"kind": "b", "c": {"kind": "c", "d": {"kind": "d"}}}}
        with pytest.raises(MaxDepthExceeded) as info:
            GraphMaterializer(factory, config).materialize(data)
        assert info.value.path == ("b", "c", "d")
        assert ("dispense", "d") not in factory.calls

    def test_within_max_depth(self, factory) -> None:
        config = MaterializerConfig(max_depth=3)
        data = {"kind": "a", "b": {"kind": "b", "c": {"kind": "c"}}}
        record = GraphMaterializer(factory, config).materialize(data)
        assert record["b"]["c"].kind == "c"

    def test_collection_levels_count(self, factory) -> None:
        config = MaterializerConfig(max_depth=2)
        with pytest.raises(MaxDepthExceeded):
            GraphMaterializer(factory, config).materialize({"kind": "a", "xs": [{"kind": "x"}]})


class TestIdempotence:
    def test_same_input_same_structure(self, factory) -> None:
        data = {
            "kind": "order",
            "ownItem": [{"kind": "item", "name": "pen"}],
            "customer": {"kind": "customer", "name": "Bill"},
        }
        first = GraphMaterializer(factory).materialize(data)
        second = GraphMaterializer(factory).materialize(data)
        assert first is not second
        assert _structure(first) == _structure(second)

    def test_input_not_mutated(self, factory) -> None:
        data = {"kind": "order", "identifier": None, "ownItem": [{"kind": "item"}]}
        GraphMaterializer(factory).materialize(data)
        assert data == {"kind": "order", "identifier": None, "ownItem": [{"kind": "item"}]}


def test_module_level_helper(factory) -> None:
    graph = materialize([{"kind": "a"}], factory, filter_empty=False)
    assert isinstance(graph, RecordCollection)
    assert factory.calls == [("dispense", "a")]


def test_config_is_frozen(factory) -> None:
    m = GraphMaterializer(factory, TRUSTED)
    assert m.config.allow_load is True
    with pytest.raises(Exception):
        m.config.allow_load = False  # type: ignore[misc]
