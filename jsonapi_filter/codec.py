"""
Query codec: URL query parameters <-> filter expression trees.

Wire format:
    q=p1 AND p2 OR NOT p3
    filter[p1][name]=age&filter[p1][condition]=gte&filter[p1][value]=21
    ...

`parse_filter` reads a flat parameter mapping (values may be strings or lists of
strings, as produced by `urllib.parse.parse_qs` or `httpx.QueryParams`) and returns
an expression tree. `build_query` is the inverse; it assigns positional identifiers
(`p1`, `p2`, ...) to leaves in pre-order.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import DEFAULT_SETTINGS, ParserSettings
from .exceptions import (
    FilterError,
    FilterValidationError,
    UnsupportedOperationError,
    join_errors,
)
from .expressions import (
    SUPPORTED_CONDITIONS,
    AndFilter,
    AtomicFilter,
    FilterCondition,
    FilterEvaluator,
    FilterExpression,
    IdentityFilter,
    NotFilter,
    OrFilter,
    evaluate,
    fold_expression,
)
from .syntax import Node, build_ast
from .tokenizer import KEYWORD_AND, KEYWORD_NOT, KEYWORD_OR, TokenKind, split_expression
from .transformers import TransformerLike, apply_transformer, as_transformer

logger = logging.getLogger(__name__)

PARAM_PARTS = ("name", "condition", "value")


def filter_key(identifier: str, part: str) -> str:
    """Parameter key for one part of an identifier's group, e.g. `filter[p1][name]`."""
    return f"filter[{identifier}][{part}]"


def is_filter_key(key: str) -> bool:
    return key.startswith("filter[") and key.endswith("]")


def get_param(params: Mapping[str, Any], key: str) -> str | None:
    """First value for a key; list values (from `parse_qs`) yield their first item."""
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


class FilterParams(BaseModel):
    """One `filter[<id>][name|condition|value]` parameter group."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    condition: FilterCondition
    value: str = Field(min_length=1)

    def to_filter(self) -> AtomicFilter:
        return AtomicFilter(self.name, self.condition, self.value)


def read_filter_params(params: Mapping[str, Any], identifier: str) -> FilterParams:
    """Validate the parameter group for an identifier.

    Raises:
        FilterValidationError: For a missing or empty part, or an unknown condition.
            Every problem in the group is listed in one error.
    """
    raw = {
        part: value
        for part in PARAM_PARTS
        if (value := get_param(params, filter_key(identifier, part))) is not None
    }
    try:
        return FilterParams.model_validate(raw)
    except ValidationError as e:
        keys: list[str] = []
        messages: list[str] = []
        for err in e.errors():
            part = str(err["loc"][0]) if err["loc"] else ""
            key = filter_key(identifier, part)
            keys.append(key)
            if err["type"] == "enum":
                messages.append(
                    f"{key} has unknown condition '{raw.get(part)}'. "
                    f"Supported conditions: {', '.join(sorted(SUPPORTED_CONDITIONS))}"
                )
            else:
                messages.append(f"{key} is required")
        raise FilterValidationError(
            "; ".join(messages),
            field=keys[0],
            details={"identifier": identifier, "fields": keys},
        ) from None


# =============================================================================
# Parse
# =============================================================================


class _TreeResolver:
    """Substitutes each AST node with its filter expression equivalent.

    The walk is iterative; failures from every leaf are collected and raised together.
    """

    def __init__(self, params: Mapping[str, Any], transformer: TransformerLike | None):
        self.params = params
        self.transformer = as_transformer(transformer)

    def _leaf(self, identifier: str) -> FilterExpression:
        f = read_filter_params(self.params, identifier).to_filter()
        return apply_transformer(self.transformer, f)

    def resolve(self, root: Node) -> FilterExpression:
        stack: list[tuple[Node, bool]] = [(root, False)]
        values: list[FilterExpression | None] = []
        errors: list[FilterError] = []

        while stack:
            node, expanded = stack.pop()
            kind = node.kind
            if kind is TokenKind.VARIABLE:
                try:
                    values.append(self._leaf(node.token.text))
                except FilterError as e:
                    errors.append(e)
                    values.append(None)
                continue

            if not expanded:
                stack.append((node, True))
                if node.right is not None:
                    stack.append((node.right, False))
                assert node.left is not None
                stack.append((node.left, False))
                continue

            if kind is TokenKind.NOT:
                operand = values.pop()
                values.append(None if operand is None else NotFilter(operand))
                continue

            right = values.pop()
            left = values.pop()
            if left is None or right is None:
                values.append(None)
            elif kind is TokenKind.AND:
                values.append(AndFilter(left, right))
            else:
                values.append(OrFilter(left, right))

        err = join_errors(errors)
        if err is not None:
            raise err
        result = values[0]
        assert result is not None
        return result


def parse_filter(
    params: Mapping[str, Any],
    transformer: TransformerLike | None = None,
    *,
    settings: ParserSettings | None = None,
) -> FilterExpression:
    """
    Parse URL query parameters into a filter expression.

    Args:
        params: Flat query parameter mapping
        transformer: Optional per-leaf transformer (default passes leaves through)
        settings: Parser settings (token limit, expression key)

    Returns:
        The expression tree; `IdentityFilter()` when no expression is present

    Raises:
        FilterSyntaxError: If the expression is malformed
        FilterValidationError: If a referenced parameter group is incomplete
        TransformError: If the transformer rejects a leaf

    Examples:
        >>> str(parse_filter({
        ...     "q": "p1 AND NOT p2",
        ...     "filter[p1][name]": "status", "filter[p1][condition]": "eq",
        ...     "filter[p1][value]": "active",
        ...     "filter[p2][name]": "name", "filter[p2][condition]": "contains",
        ...     "filter[p2][value]": "test",
        ... }))
        "([status eq 'active'] && ![name contains 'test'])"

        >>> str(parse_filter({}))
        'TRUE'
    """
    settings = settings or DEFAULT_SETTINGS
    expression = get_param(params, settings.expression_key)
    if expression is None:
        return IdentityFilter()

    words = split_expression(expression)
    if not words:
        return IdentityFilter()

    root = build_ast(words, max_tokens=settings.max_tokens)
    expr = _TreeResolver(params, transformer).resolve(root)
    logger.debug("Parsed filter query %r into %s", expression, expr)
    return expr


# =============================================================================
# Serialize
# =============================================================================


class _QueryBuilder(FilterEvaluator[str]):
    """Writes leaf parameter groups and returns the `q` text for each subtree.

    The identifier counter belongs to one top-level `build_query` call.
    """

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.counter: Iterator[int] = itertools.count(1)
        self.params: dict[str, str] = {}

    def _fold(self, expr: FilterExpression) -> str:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=lambda left, right: f"{left} {KEYWORD_AND.upper()} {right}",
            or_=lambda left, right: f"{left} {KEYWORD_OR.upper()} {right}",
            not_=lambda operand: f"{KEYWORD_NOT.upper()} {operand}",
        )

    def evaluate_atomic(self, f: AtomicFilter) -> str:
        identifier = f"{self.prefix}{next(self.counter)}"
        self.params[filter_key(identifier, "name")] = f.name
        self.params[filter_key(identifier, "condition")] = f.condition.value
        self.params[filter_key(identifier, "value")] = f.value
        return identifier

    def evaluate_and(self, a: AndFilter) -> str:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> str:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> str:
        return self._fold(n)

    def evaluate_identity(self) -> str:
        raise UnsupportedOperationError(
            "Identity expression has no query form; omit the filter instead"
        )

    def evaluate_custom(self, value: Any) -> str:
        raise UnsupportedOperationError(
            f"Custom expression {type(value).__name__} cannot be serialized to a query"
        )


def count_tokens(expr: FilterExpression) -> int:
    """Tokens in the `q` text of an expression: one per leaf, AND, OR, and NOT."""
    count = 0
    stack = [expr]
    while stack:
        node = stack.pop()
        count += 1
        if isinstance(node, (AndFilter, OrFilter)):
            stack.extend((node.left, node.right))
        elif isinstance(node, NotFilter):
            stack.append(node.operand)
    return count


def _check_token_limit(token_count: int, settings: ParserSettings) -> None:
    if settings.max_tokens and token_count > settings.max_tokens:
        raise UnsupportedOperationError(
            f"Serialized filter has {token_count} tokens; the limit is {settings.max_tokens}"
        )


def build_query(
    expr: FilterExpression,
    *,
    settings: ParserSettings | None = None,
    normalize: bool = True,
) -> dict[str, str]:
    """
    Serialize an expression into flat URL query parameters.

    The `q` text carries no grouping, so a tree whose shape the parser would not
    reproduce (e.g. `a AND (b OR c)`) is first rewritten into an equivalent tree that
    it would, see `to_wire_shape`. Pass `normalize=False` to emit the tree as-is.

    Raises:
        UnsupportedOperationError: For identity or custom expressions, or when the
            expression (before or after rewriting) exceeds the token limit
    """
    settings = settings or DEFAULT_SETTINGS
    # Rewriting never shrinks a tree
    _check_token_limit(count_tokens(expr), settings)
    if normalize:
        expr = to_wire_shape(expr, settings=settings)

    builder = _QueryBuilder(settings.identifier_prefix)
    text = evaluate(builder, expr)
    _check_token_limit(len(split_expression(text)), settings)

    logger.debug("Built filter query %r with %d parameter groups", text, len(builder.params) // 3)
    return {settings.expression_key: text, **builder.params}


# =============================================================================
# Wire shape
# =============================================================================
#
# Shapes the parser produces without parentheses:
#   or_expr  := and_expr | or_expr OR and_expr
#   and_expr := unary | and_expr AND unary
#   unary    := atomic | NOT unary


def _flatten(
    expr: FilterExpression, kind: type[AndFilter] | type[OrFilter]
) -> list[FilterExpression]:
    """Operands of a chain of `kind` nodes, left to right."""
    operands: list[FilterExpression] = []
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, kind):
            stack.append(node.right)
            stack.append(node.left)
        else:
            operands.append(node)
    return operands


def _disjuncts(expr: FilterExpression) -> list[FilterExpression]:
    return _flatten(expr, OrFilter)


def _conjuncts(expr: FilterExpression) -> list[FilterExpression]:
    return _flatten(expr, AndFilter)


def _leaves(expr: FilterExpression) -> int:
    count = 0
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, (AndFilter, OrFilter)):
            stack.extend((node.left, node.right))
        elif isinstance(node, NotFilter):
            stack.append(node.operand)
        else:
            count += 1
    return count


class _WireShaper(FilterEvaluator[FilterExpression]):
    """Rewrites a tree into an equivalent one the parser reproduces exactly.

    Already-conforming trees come back unchanged. Other trees are rewritten with
    associativity, De Morgan's laws, and distribution of AND over OR.
    """

    def __init__(self, max_leaves: int):
        self.max_leaves = max_leaves

    def _or(self, left: FilterExpression, right: FilterExpression) -> FilterExpression:
        result = left
        for d in _disjuncts(right):
            result = OrFilter(result, d)
        return result

    def _and(self, left: FilterExpression, right: FilterExpression) -> FilterExpression:
        lefts, rights = _disjuncts(left), _disjuncts(right)
        if len(lefts) == 1 and len(rights) == 1:
            result = left
            for c in _conjuncts(right):
                result = AndFilter(result, c)
            return result

        if self.max_leaves:
            estimate = sum(_leaves(x) for x in lefts) * len(rights) + sum(
                _leaves(x) for x in rights
            ) * len(lefts)
            if estimate > self.max_leaves:
                raise UnsupportedOperationError(
                    "Filter cannot be expressed without grouping within the token limit"
                )

        result: FilterExpression | None = None
        for lhs in lefts:
            for rhs in rights:
                term = self._and(lhs, rhs)
                result = term if result is None else self._or(result, term)
        assert result is not None
        return result

    def _negate(self, expr: FilterExpression) -> FilterExpression:
        if isinstance(expr, OrFilter):
            result: FilterExpression | None = None
            for d in _disjuncts(expr):
                term = self._negate(d)
                result = term if result is None else self._and(result, term)
            assert result is not None
            return result
        if isinstance(expr, AndFilter):
            result = None
            for c in _conjuncts(expr):
                term = self._negate(c)
                result = term if result is None else self._or(result, term)
            assert result is not None
            return result
        return NotFilter(expr)

    def _fold(self, expr: FilterExpression) -> FilterExpression:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=self._and,
            or_=self._or,
            not_=self._negate,
        )

    def evaluate_atomic(self, f: AtomicFilter) -> FilterExpression:
        return f

    def evaluate_and(self, a: AndFilter) -> FilterExpression:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> FilterExpression:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> FilterExpression:
        return self._fold(n)

    def evaluate_identity(self) -> FilterExpression:
        raise UnsupportedOperationError(
            "Identity expression has no query form; omit the filter instead"
        )

    def evaluate_custom(self, value: Any) -> FilterExpression:
        raise UnsupportedOperationError(
            f"Custom expression {type(value).__name__} cannot be serialized to a query"
        )


def to_wire_shape(
    expr: FilterExpression, *, settings: ParserSettings | None = None
) -> FilterExpression:
    """Equivalent tree that survives `build_query` -> `parse_filter` unchanged.

    Raises:
        UnsupportedOperationError: When the tree cannot be written within the token
            limit, or contains identity or custom expressions
    """
    settings = settings or DEFAULT_SETTINGS
    # n leaves take at least 2n - 1 tokens
    max_leaves = (settings.max_tokens + 1) // 2 if settings.max_tokens else 0
    if max_leaves and _leaves(expr) > max_leaves:
        raise UnsupportedOperationError(
            f"Filter has more than {max_leaves} leaves; the token limit is {settings.max_tokens}"
        )
    return evaluate(_WireShaper(max_leaves), expr)
