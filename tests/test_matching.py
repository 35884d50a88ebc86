"""Tests for in-memory record matching."""

from __future__ import annotations

from typing import Any

import pytest

from jsonapi_filter.exceptions import UnsupportedOperationError
from jsonapi_filter.expressions import CustomFilter, F, Filter
from jsonapi_filter.matching import RecordMatcher, matches, resolve_field

RECORD: dict[str, Any] = {
    "name": "Acme Corp",
    "age": 30,
    "score": 4.5,
    "active": True,
    "tags": ["b2b", "Enterprise"],
    "owner": None,
    "address": {"city": "Berlin", "zip": "10115"},
    "meta.source": "import",
}


class Marker(CustomFilter):
    pass


def test_resolve_field() -> None:
    assert resolve_field(RECORD, "name") == "Acme Corp"
    assert resolve_field(RECORD, "address.city") == "Berlin"
    assert resolve_field(RECORD, "meta.source") == "import"
    assert resolve_field(RECORD, "address.country") is None
    assert resolve_field(RECORD, "name.first") is None


@pytest.mark.parametrize(
    ("expr", "expected"),
    [
        (F.field("name").eq("Acme Corp"), True),
        (F.field("name").eq("acme corp"), False),
        (F.field("name").neq("Other"), True),
        (F.field("name").contains("acme"), True),
        (F.field("name").starts_with("ac"), True),
        (F.field("name").starts_with("corp"), False),
        (F.field("age").eq(30), True),
        (F.field("age").gt(29), True),
        (F.field("age").gte(30), True),
        (F.field("age").lt(30), False),
        (F.field("age").lte(30.5), True),
        (F.field("score").gt("4"), True),
        (F.field("active").eq(True), True),
        (F.field("active").eq("FALSE"), False),
        (F.field("tags").eq("b2b"), True),
        (F.field("tags").contains("enter"), True),
        (F.field("owner").eq("x"), False),
        (F.field("owner").neq("x"), True),
        (F.field("owner").gt(1), False),
        (F.field("missing").contains("x"), False),
        (F.field("address.city").eq("Berlin"), True),
        (F.field("address.zip").gte("10000"), True),
    ],
)
def test_atomic_conditions(expr: Any, expected: bool) -> None:
    assert matches(expr, RECORD) is expected


def test_string_fields_compare_lexically() -> None:
    record = {"code": "B7"}
    assert matches(F.field("code").gt("A9"), record)


def test_boolean_logic() -> None:
    expr = (F.field("age").gte(18) & ~F.field("name").contains("test")) | F.field(
        "owner"
    ).eq("nobody")
    assert matches(expr, RECORD)
    assert not matches(expr, {"age": 10, "name": "x"})


def test_identity_matches_everything() -> None:
    assert matches(Filter.identity(), {})


def test_custom_is_unsupported() -> None:
    with pytest.raises(UnsupportedOperationError):
        matches(Marker(), RECORD)


def test_matcher_is_reusable_evaluator() -> None:
    matcher = RecordMatcher(RECORD)
    assert matcher.evaluate_identity() is True
    assert F.field("age").eq(30).apply_evaluator(matcher) is True


def test_incomparable_types_fall_back_to_strings() -> None:
    record = {"versions": [1, 2]}
    assert matches(F.field("versions").gt("[0"), record)


def test_wide_and_deep_trees() -> None:
    wide = F.field("age").in_list(range(1000))
    assert matches(wide, RECORD)
    assert not matches(wide, {"age": 5000})

    deep: Any = F.field("age").eq(30)
    for _ in range(3001):
        deep = ~deep
    assert not matches(deep, RECORD)
