"""In-memory evaluation of filter expressions against plain records.

Useful for tests, fixtures, and small datasets that never reach a storage backend.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from .exceptions import UnsupportedOperationError
from .expressions import (
    AndFilter,
    AtomicFilter,
    FilterCondition,
    FilterEvaluator,
    FilterExpression,
    NotFilter,
    OrFilter,
    evaluate,
    fold_expression,
)

# =============================================================================
# Operator Definitions
# =============================================================================

OperatorFunc = Callable[[Any, str], bool]


def _coerce(field_value: Any, target: str) -> Any:
    """Coerce the string filter value toward the field's type where possible."""
    if isinstance(field_value, bool):
        lowered = target.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return target
    if isinstance(field_value, int):
        try:
            return int(target)
        except ValueError:
            try:
                return float(target)
            except ValueError:
                return target
    if isinstance(field_value, float):
        try:
            return float(target)
        except ValueError:
            return target
    return target


def _safe_compare(a: Any, b: str, op: Callable[[Any, Any], bool]) -> bool:
    """Compare values, handling None and type mismatches."""
    if a is None:
        return False
    try:
        return op(a, _coerce(a, b))
    except TypeError:
        # Type mismatch - fall back to string comparison
        return op(str(a), b)


def _eq(a: Any, b: str) -> bool:
    """Equality; for list fields, membership of the value."""
    if a is None:
        return False
    if isinstance(a, list):
        return any(_eq(item, b) for item in a)
    return bool(a == _coerce(a, b))


def _neq(a: Any, b: str) -> bool:
    return not _eq(a, b)


def _gt(a: Any, b: str) -> bool:
    return _safe_compare(a, b, lambda x, y: x > y)


def _gte(a: Any, b: str) -> bool:
    return _safe_compare(a, b, lambda x, y: x >= y)


def _lt(a: Any, b: str) -> bool:
    return _safe_compare(a, b, lambda x, y: x < y)


def _lte(a: Any, b: str) -> bool:
    return _safe_compare(a, b, lambda x, y: x <= y)


def _contains(a: Any, b: str) -> bool:
    """Case-insensitive substring match; for list fields, any element."""
    if a is None:
        return False
    if isinstance(a, list):
        return any(_contains(item, b) for item in a)
    return b.lower() in str(a).lower()


def _starts_with(a: Any, b: str) -> bool:
    """Case-insensitive prefix match."""
    if a is None:
        return False
    return str(a).lower().startswith(b.lower())


OPERATORS: dict[FilterCondition, OperatorFunc] = {
    FilterCondition.EQ: _eq,
    FilterCondition.NEQ: _neq,
    FilterCondition.GT: _gt,
    FilterCondition.GTE: _gte,
    FilterCondition.LT: _lt,
    FilterCondition.LTE: _lte,
    FilterCondition.CONTAINS: _contains,
    FilterCondition.STARTS_WITH: _starts_with,
}


# =============================================================================
# Field Path Resolution
# =============================================================================


def resolve_field(record: Mapping[str, Any], name: str) -> Any:
    """Resolve a field name to a value.

    An exact key wins; otherwise dotted names walk nested mappings
    ("address.city"). Returns None when the path does not resolve.
    """
    if name in record:
        return record[name]

    current: Any = record
    for part in name.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


# =============================================================================
# Evaluator
# =============================================================================


class RecordMatcher(FilterEvaluator[bool]):
    """Evaluates an expression against one record."""

    def __init__(self, record: Mapping[str, Any]):
        self.record = record

    def evaluate_atomic(self, f: AtomicFilter) -> bool:
        value = resolve_field(self.record, f.name)
        return OPERATORS[f.condition](value, f.value)

    def _fold(self, expr: FilterExpression) -> bool:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=lambda left, right: left and right,
            or_=lambda left, right: left or right,
            not_=lambda operand: not operand,
        )

    def evaluate_and(self, a: AndFilter) -> bool:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> bool:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> bool:
        return self._fold(n)

    def evaluate_identity(self) -> bool:
        return True

    def evaluate_custom(self, value: Any) -> bool:
        raise UnsupportedOperationError(
            f"Custom expression {type(value).__name__} cannot be matched in memory"
        )


def matches(expr: FilterExpression, record: Mapping[str, Any]) -> bool:
    """Check if a record matches a filter expression.

    Args:
        expr: The expression to apply
        record: The record to check

    Returns:
        True if the record matches
    """
    return evaluate(RecordMatcher(record), expr)
