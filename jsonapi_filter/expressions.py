"""
Filter expression model and evaluator protocol.

A parsed (or programmatically built) filter is an immutable tree of
`FilterExpression` nodes. Behavior lives outside the tree: each node hands itself to
a `FilterEvaluator` by calling the one method matching its variant, so new
interpretations (stringify, rebuild a query, compile to a storage predicate) can be
added without touching the node types.

Example:
    from jsonapi_filter.expressions import F

    expr = (
        F.field("status").eq("active") &
        (F.field("age").gte(21) | ~F.field("name").contains("test"))
    )
    str(expr)
    # "([status eq 'active'] && ([age gte '21'] || ![name contains 'test']))"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from .exceptions import FilterError, join_errors

T = TypeVar("T")


class FilterCondition(str, Enum):
    """Comparison applied between a resource field and a filter value."""

    EQ = "eq"  # Field equals the value
    NEQ = "neq"  # Field does not equal the value
    CONTAINS = "contains"  # Field contains the value
    LT = "lt"  # Field is less than the value
    LTE = "lte"  # Field is less than or equal to the value
    GT = "gt"  # Field is greater than the value
    GTE = "gte"  # Field is greater than or equal to the value
    STARTS_WITH = "starts_with"  # Field starts with the value

    def __str__(self) -> str:
        return self.value


SUPPORTED_CONDITIONS = frozenset(c.value for c in FilterCondition)


# =============================================================================
# Expression variants
# =============================================================================


class FilterExpression(ABC):
    """Base class for filter expressions."""

    @abstractmethod
    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        """Invoke the evaluator method matching this variant."""
        ...

    def __and__(self, other: FilterExpression) -> FilterExpression:
        """Combine two expressions with `&`."""
        return AndFilter(self, other)

    def __or__(self, other: FilterExpression) -> FilterExpression:
        """Combine two expressions with `|`."""
        return OrFilter(self, other)

    def __invert__(self) -> FilterExpression:
        """Negate the expression with `~`."""
        return NotFilter(self)

    def __str__(self) -> str:
        return evaluate(ExpressionFormatter(), self)


def _require_expression(value: Any, role: str) -> None:
    if not isinstance(value, FilterExpression):
        raise TypeError(f"{role} must be a FilterExpression, got {type(value).__name__}")


@dataclass(frozen=True)
class AtomicFilter(FilterExpression):
    """A single comparison: one named field, one condition, one value."""

    name: str
    condition: FilterCondition
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("AtomicFilter.name must be a non-empty string")
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("AtomicFilter.value must be a non-empty string")
        if not isinstance(self.condition, FilterCondition):
            try:
                condition = FilterCondition(self.condition)
            except ValueError:
                raise ValueError(
                    f"Unknown condition '{self.condition}'. "
                    f"Supported conditions: {', '.join(sorted(SUPPORTED_CONDITIONS))}"
                ) from None
            object.__setattr__(self, "condition", condition)

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_atomic(self)


@dataclass(frozen=True)
class AndFilter(FilterExpression):
    """Both operands must hold."""

    left: FilterExpression
    right: FilterExpression

    def __post_init__(self) -> None:
        _require_expression(self.left, "AndFilter.left")
        _require_expression(self.right, "AndFilter.right")

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_and(self)


@dataclass(frozen=True)
class OrFilter(FilterExpression):
    """Either operand must hold."""

    left: FilterExpression
    right: FilterExpression

    def __post_init__(self) -> None:
        _require_expression(self.left, "OrFilter.left")
        _require_expression(self.right, "OrFilter.right")

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_or(self)


@dataclass(frozen=True)
class NotFilter(FilterExpression):
    """Negation of a single operand."""

    operand: FilterExpression

    def __post_init__(self) -> None:
        _require_expression(self.operand, "NotFilter.operand")

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_not(self)


@dataclass(frozen=True)
class IdentityFilter(FilterExpression):
    """The neutral expression; matches every resource."""

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_identity()

    def __str__(self) -> str:
        return "TRUE"


class CustomFilter(FilterExpression):
    """
    Extension point for expressions outside the built-in variants.

    Subclasses are handed to `FilterEvaluator.evaluate_custom`; evaluators that know
    the subclass handle it there, all others raise `UnsupportedOperationError`.

    Example:
        @dataclass(frozen=True)
        class WithinRadius(CustomFilter):
            lat: float
            lng: float
            km: float

        class GeoEvaluator(ExpressionFormatter):
            def evaluate_custom(self, value: Any) -> str:
                if isinstance(value, WithinRadius):
                    return f"within({value.lat}, {value.lng}, {value.km})"
                return super().evaluate_custom(value)
    """

    def apply_evaluator(self, evaluator: FilterEvaluator[T]) -> T:
        return evaluator.evaluate_custom(self)

    def __str__(self) -> str:
        return repr(self)


# =============================================================================
# Evaluator protocol
# =============================================================================


class FilterEvaluator(ABC, Generic[T]):
    """
    Interprets a filter expression, one method per variant.

    Methods return the evaluation result and raise `FilterError` on failure.
    Composite handlers should evaluate every child before raising (see
    `collect_errors`) so a single pass reports every problem. Evaluators that must
    handle very wide or deep trees can hand composites to `fold_expression`.

    `evaluate_custom` has no default; an evaluator without custom support must
    raise `UnsupportedOperationError` rather than ignore the node.
    """

    @abstractmethod
    def evaluate_atomic(self, f: AtomicFilter) -> T: ...

    @abstractmethod
    def evaluate_and(self, a: AndFilter) -> T: ...

    @abstractmethod
    def evaluate_or(self, o: OrFilter) -> T: ...

    @abstractmethod
    def evaluate_not(self, n: NotFilter) -> T: ...

    @abstractmethod
    def evaluate_identity(self) -> T: ...

    @abstractmethod
    def evaluate_custom(self, value: Any) -> T: ...


def evaluate(evaluator: FilterEvaluator[T], expr: FilterExpression) -> T:
    """Apply the evaluator to the expression."""
    if expr is None:
        raise TypeError("Cannot evaluate a missing filter expression")
    return expr.apply_evaluator(evaluator)


def collect_errors(*calls: Callable[[], T]) -> list[T]:
    """Run every call, then raise all collected filter errors together.

    Returns the results in call order when every call succeeds.
    """
    results: list[T] = []
    errors: list[FilterError] = []
    for call in calls:
        try:
            results.append(call())
        except FilterError as e:
            errors.append(e)
    err = join_errors(errors)
    if err is not None:
        raise err
    return results


_FAILED = object()


def fold_expression(
    expr: FilterExpression,
    leaf: Callable[[FilterExpression], T],
    *,
    and_: Callable[[T, T], T],
    or_: Callable[[T, T], T],
    not_: Callable[[T], T],
) -> T:
    """Bottom-up fold over an expression, without recursion.

    `leaf` is called for atomic, identity, and custom nodes from left to right; the
    combiners build the result of each AND, OR, and NOT node from its operands.
    Filter errors raised by any callback are collected and raised together once the
    walk completes, the same way `collect_errors` reports sibling failures.
    """
    if expr is None:
        raise TypeError("Cannot evaluate a missing filter expression")

    stack: list[tuple[FilterExpression, bool]] = [(expr, False)]
    values: list[Any] = []
    errors: list[FilterError] = []

    def combine(fn: Callable[..., T], *operands: Any) -> Any:
        if any(v is _FAILED for v in operands):
            return _FAILED
        try:
            return fn(*operands)
        except FilterError as e:
            errors.append(e)
            return _FAILED

    while stack:
        node, expanded = stack.pop()
        if isinstance(node, (AndFilter, OrFilter)):
            if not expanded:
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
                continue
            right = values.pop()
            left = values.pop()
            values.append(combine(and_ if isinstance(node, AndFilter) else or_, left, right))
        elif isinstance(node, NotFilter):
            if not expanded:
                stack.append((node, True))
                stack.append((node.operand, False))
                continue
            values.append(combine(not_, values.pop()))
        else:
            try:
                values.append(leaf(node))
            except FilterError as e:
                errors.append(e)
                values.append(_FAILED)

    err = join_errors(errors)
    if err is not None:
        raise err
    return values[0]  # type: ignore[no-any-return]


class ExpressionFormatter(FilterEvaluator[str]):
    """Canonical string form of an expression.

    `[name cond 'value']`, `(a && b)`, `(a || b)`, `!a`, `TRUE`.
    """

    def evaluate_atomic(self, f: AtomicFilter) -> str:
        return f"[{f.name} {f.condition.value} '{f.value}']"

    def _fold(self, expr: FilterExpression) -> str:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=lambda left, right: f"({left} && {right})",
            or_=lambda left, right: f"({left} || {right})",
            not_=lambda operand: f"!{operand}",
        )

    def evaluate_and(self, a: AndFilter) -> str:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> str:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> str:
        return self._fold(n)

    def evaluate_identity(self) -> str:
        return "TRUE"

    def evaluate_custom(self, value: Any) -> str:
        return str(value)


# =============================================================================
# Builder
# =============================================================================


def _format_value(value: Any) -> str:
    """Format a Python value as a filter value string."""
    if value is None:
        raise ValueError("None is not a valid filter value")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    # Handle datetime before date (datetime is subclass of date)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value if isinstance(value, str) else str(value)


class FieldBuilder:
    """Builder for atomic filters on one field."""

    def __init__(self, field_name: str):
        self._field_name = field_name

    def _atomic(self, condition: FilterCondition, value: Any) -> AtomicFilter:
        return AtomicFilter(self._field_name, condition, _format_value(value))

    def eq(self, value: Any) -> AtomicFilter:
        """Field equals value."""
        return self._atomic(FilterCondition.EQ, value)

    def neq(self, value: Any) -> AtomicFilter:
        """Field does not equal value."""
        return self._atomic(FilterCondition.NEQ, value)

    def contains(self, value: str) -> AtomicFilter:
        """Field contains substring."""
        return self._atomic(FilterCondition.CONTAINS, value)

    def starts_with(self, value: str) -> AtomicFilter:
        """Field starts with prefix."""
        return self._atomic(FilterCondition.STARTS_WITH, value)

    def lt(self, value: int | float | datetime | date | str) -> AtomicFilter:
        return self._atomic(FilterCondition.LT, value)

    def lte(self, value: int | float | datetime | date | str) -> AtomicFilter:
        return self._atomic(FilterCondition.LTE, value)

    def gt(self, value: int | float | datetime | date | str) -> AtomicFilter:
        return self._atomic(FilterCondition.GT, value)

    def gte(self, value: int | float | datetime | date | str) -> AtomicFilter:
        return self._atomic(FilterCondition.GTE, value)

    def in_list(self, values: Iterable[Any]) -> FilterExpression:
        """Field value is one of the given values (OR of equals)."""
        expressions: list[FilterExpression] = [self.eq(v) for v in values]
        if not expressions:
            raise ValueError("in_list() requires at least one value")
        return Filter.or_(*expressions)


class Filter:
    """
    Factory for building filter expressions.

    Example:
        # Simple comparison
        Filter.field("name").contains("Acme")

        # Complex boolean logic
        (Filter.field("status").eq("active") &
         Filter.field("type").in_list(["customer", "prospect"]))

        # Negation
        ~Filter.field("archived").eq(True)
    """

    @staticmethod
    def field(name: str) -> FieldBuilder:
        """Start building a filter on a field."""
        return FieldBuilder(name)

    @staticmethod
    def identity() -> IdentityFilter:
        return IdentityFilter()

    @staticmethod
    def and_(*expressions: FilterExpression) -> FilterExpression:
        """Combine expressions left to right with AND."""
        if not expressions:
            raise ValueError("and_() requires at least one expression")
        result = expressions[0]
        for expr in expressions[1:]:
            result = result & expr
        return result

    @staticmethod
    def or_(*expressions: FilterExpression) -> FilterExpression:
        """Combine expressions left to right with OR."""
        if not expressions:
            raise ValueError("or_() requires at least one expression")
        result = expressions[0]
        for expr in expressions[1:]:
            result = result | expr
        return result


# Shorthand alias for convenience
F = Filter
