from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from jsonapi_filter.config import ParserSettings
from jsonapi_filter.exceptions import (
    FilterError,
    FilterSyntaxError,
    FilterValidationError,
    TransformError,
    UnsupportedOperationError,
)

from .errors import CLIError
from .results import ErrorInfo

OutputFormat = Literal["table", "json"]

_HINTS: dict[type[FilterError], str] = {
    FilterSyntaxError: "Join identifiers with AND / OR; NOT may precede any identifier.",
    FilterValidationError: (
        "Every identifier in q needs filter[<id>][name], [condition], and [value]."
    ),
}


@dataclass
class CLIContext:
    output: OutputFormat
    quiet: bool
    verbosity: int
    settings: ParserSettings = field(default_factory=ParserSettings)


def exit_code_for_exception(exc: Exception) -> int:
    if isinstance(exc, CLIError):
        return exc.exit_code
    if isinstance(exc, (FilterSyntaxError, FilterValidationError)):
        return 2
    if isinstance(exc, (TransformError, UnsupportedOperationError)):
        return 3
    if isinstance(exc, FilterError):
        return 2
    return 1


def error_info_for_exception(exc: Exception) -> ErrorInfo:
    if isinstance(exc, CLIError):
        return ErrorInfo(
            type=exc.error_type, message=exc.message, hint=exc.hint, details=exc.details
        )
    if isinstance(exc, FilterError):
        hint = next((h for t, h in _HINTS.items() if isinstance(exc, t)), None)
        return ErrorInfo(
            type=exc.__class__.__name__, message=exc.message, hint=hint, details=exc.details
        )
    return ErrorInfo(type=exc.__class__.__name__, message=str(exc), details=None)
