"""
Per-leaf transformation hook.

A transformer is called once for every atomic filter resolved during parsing, before
the leaf is placed into the tree. It may return the filter unchanged, a rewritten
filter, a richer sub-expression, or raise to reject the filter.

Example:
    mux = TransformerMux()

    @mux.register("age")
    def coerce_age(f: AtomicFilter) -> FilterExpression:
        if not f.value.isdigit():
            raise TransformError(f"age must be a whole number, got {f.value!r}", name=f.name)
        return f

    parse_filter(params, transformer=mux.strict())
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Protocol, TypeAlias, runtime_checkable

from .exceptions import FilterError, TransformError
from .expressions import AtomicFilter, FilterExpression

logger = logging.getLogger(__name__)


@runtime_checkable
class Transformer(Protocol):
    def transform(self, f: AtomicFilter) -> FilterExpression: ...


TransformerFunc: TypeAlias = Callable[[AtomicFilter], FilterExpression]
TransformerLike: TypeAlias = Transformer | TransformerFunc


class PassthroughTransformer:
    """Returns every atomic filter unchanged."""

    def transform(self, f: AtomicFilter) -> FilterExpression:
        return f

    def __repr__(self) -> str:
        return "PassthroughTransformer()"


PASSTHROUGH = PassthroughTransformer()


class _FunctionTransformer:
    def __init__(self, fn: TransformerFunc):
        self.fn = fn

    def transform(self, f: AtomicFilter) -> FilterExpression:
        return self.fn(f)

    def __repr__(self) -> str:
        return f"FunctionTransformer({getattr(self.fn, '__name__', self.fn)!r})"


def as_transformer(value: TransformerLike | None) -> Transformer:
    """Normalize a transformer object, plain callable, or None (passthrough)."""
    if value is None:
        return PASSTHROUGH
    if isinstance(value, Transformer):
        return value
    if callable(value):
        return _FunctionTransformer(value)
    raise TypeError(f"Expected a transformer or callable, got {type(value).__name__}")


class TransformerMux:
    """
    Dispatches to a transformer keyed by the atomic filter's `name`.

    In lenient mode (the default) unmatched names pass through unchanged; in strict
    mode they are rejected with `TransformError`.
    """

    def __init__(
        self,
        transformers: Mapping[str, TransformerLike] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._transformers: dict[str, Transformer] = {
            name: as_transformer(t) for name, t in (transformers or {}).items()
        }
        self.is_strict = strict

    def register(self, name: str) -> Callable[[TransformerFunc], TransformerFunc]:
        """Decorator registering a function for the given filter name."""

        def decorator(fn: TransformerFunc) -> TransformerFunc:
            self._transformers[name] = as_transformer(fn)
            return fn

        return decorator

    def add(self, name: str, transformer: TransformerLike) -> None:
        self._transformers[name] = as_transformer(transformer)

    def _with_mode(self, strict: bool) -> TransformerMux:
        mux = TransformerMux(strict=strict)
        mux._transformers = self._transformers
        return mux

    def strict(self) -> TransformerMux:
        """Return a strict view sharing the same registrations."""
        return self._with_mode(True)

    def lenient(self) -> TransformerMux:
        return self._with_mode(False)

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._transformers)

    def transform(self, f: AtomicFilter) -> FilterExpression:
        transformer = self._transformers.get(f.name)
        if transformer is None:
            if self.is_strict:
                raise TransformError(f"Unknown filter name '{f.name}'", name=f.name)
            return PASSTHROUGH.transform(f)
        return transformer.transform(f)

    def __repr__(self) -> str:
        names = ", ".join(sorted(self._transformers))
        return f"TransformerMux([{names}], strict={self.is_strict})"


def apply_transformer(transformer: Transformer, f: AtomicFilter) -> FilterExpression:
    """Run a transformer on one leaf, normalizing failures to `TransformError`."""
    try:
        result = transformer.transform(f)
    except FilterError as e:
        logger.debug("Transformer rejected filter %s: %s", f, e)
        raise
    except Exception as e:
        logger.debug("Transformer failed on filter %s: %s", f, e)
        raise TransformError(
            f"Transformer failed on filter '{f.name}': {e}", name=f.name
        ) from e

    if not isinstance(result, FilterExpression):
        raise TransformError(
            f"Transformer returned {type(result).__name__} for filter '{f.name}'; "
            "expected a FilterExpression",
            name=f.name,
        )
    return result
