"""
Boolean filter expressions carried in URL query parameters.

Clients express criteria such as `status eq active AND (age gte 21 OR NOT name
contains test)` as query parameters; servers parse them into an expression tree that
any backend can interpret through a `FilterEvaluator`.

Example:
    from jsonapi_filter import F, build_query, parse_filter

    params = build_query(F.field("status").eq("active") & ~F.field("name").contains("test"))
    # {"q": "p1 AND NOT p2", "filter[p1][name]": "status", ...}

    expr = parse_filter(params)
    str(expr)
    # "([status eq 'active'] && ![name contains 'test'])"
"""

from __future__ import annotations

from .codec import build_query, filter_key, parse_filter, to_wire_shape
from .config import DEFAULT_SETTINGS, ParserSettings
from .exceptions import (
    FilterError,
    FilterErrorGroup,
    FilterSyntaxError,
    FilterValidationError,
    TransformError,
    UnsupportedOperationError,
)
from .expressions import (
    AndFilter,
    AtomicFilter,
    CustomFilter,
    ExpressionFormatter,
    F,
    Filter,
    FilterCondition,
    FilterEvaluator,
    FilterExpression,
    IdentityFilter,
    NotFilter,
    OrFilter,
    collect_errors,
    evaluate,
    fold_expression,
)
from .matching import RecordMatcher, matches
from .transformers import (
    PASSTHROUGH,
    PassthroughTransformer,
    Transformer,
    TransformerMux,
)
from .urls import FilterQueryParser, apply_filter, parse_url

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Codec
    "build_query",
    "filter_key",
    "parse_filter",
    "to_wire_shape",
    # Config
    "DEFAULT_SETTINGS",
    "ParserSettings",
    # Errors
    "FilterError",
    "FilterErrorGroup",
    "FilterSyntaxError",
    "FilterValidationError",
    "TransformError",
    "UnsupportedOperationError",
    # Expressions
    "AndFilter",
    "AtomicFilter",
    "CustomFilter",
    "ExpressionFormatter",
    "F",
    "Filter",
    "FilterCondition",
    "FilterEvaluator",
    "FilterExpression",
    "IdentityFilter",
    "NotFilter",
    "OrFilter",
    "collect_errors",
    "evaluate",
    "fold_expression",
    # Matching
    "RecordMatcher",
    "matches",
    # Transformers
    "PASSTHROUGH",
    "PassthroughTransformer",
    "Transformer",
    "TransformerMux",
    # URLs
    "FilterQueryParser",
    "apply_filter",
    "parse_url",
]
