from __future__ import annotations

from typing import Any


class CLIError(Exception):
    """A command-line usage problem, rendered without a traceback."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int = 2,
        error_type: str = "usage_error",
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.error_type = error_type
        self.hint = hint
        self.details = details

    def __str__(self) -> str:
        return self.message


def invalid_filter_spec(spec: str, reason: str | None = None) -> CLIError:
    """Error for a malformed `--filter NAME:CONDITION:VALUE` argument."""
    message = f"Invalid --filter {spec!r}"
    message += f"; {reason}" if reason else "; expected NAME:CONDITION:VALUE"
    return CLIError(
        message,
        hint="Example: --filter age:gte:21",
        details={"filter": spec},
    )
