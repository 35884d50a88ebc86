"""
Error taxonomy for filter parsing, transformation, and evaluation.

Every error raised by this package derives from `FilterError`, so callers can map a
single exception type onto an HTTP 400 response.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class FilterError(Exception):
    """Base class for all filter errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class FilterSyntaxError(FilterError):
    """The `q` token stream is malformed."""

    def __init__(
        self,
        message: str,
        *,
        position: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.position = position


class FilterValidationError(FilterError):
    """A referenced parameter group is missing or incomplete."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.field = field


class TransformError(FilterError):
    """A transformer rejected or failed on an atomic filter."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.name = name


class UnsupportedOperationError(FilterError):
    """An evaluator was applied to a variant it does not handle."""


class FilterErrorGroup(FilterError):
    """Every failure collected while evaluating sibling branches."""

    def __init__(self, errors: Sequence[FilterError]) -> None:
        self.errors = list(errors)
        lines = [f"- {err}" for err in self.errors]
        super().__init__("Multiple filter errors:\n" + "\n".join(lines))


def join_errors(errors: Sequence[FilterError]) -> FilterError | None:
    """Combine collected errors into one, or return None when there are none.

    Nested groups are flattened so a report lists leaf failures only.
    """
    flat: list[FilterError] = []
    for err in errors:
        if isinstance(err, FilterErrorGroup):
            flat.extend(err.errors)
        else:
            flat.append(err)
    if not flat:
        return None
    if len(flat) == 1:
        return flat[0]
    return FilterErrorGroup(flat)
