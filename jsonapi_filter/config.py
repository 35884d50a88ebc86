"""
Parser settings.

Settings are plain frozen values; every public parse/serialize entry point takes an
optional `settings` argument and falls back to `DEFAULT_SETTINGS`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_TOKENS = 256
DEFAULT_EXPRESSION_KEY = "q"
DEFAULT_IDENTIFIER_PREFIX = "p"

ENV_MAX_TOKENS = "JSONAPI_FILTER_MAX_TOKENS"
ENV_EXPRESSION_KEY = "JSONAPI_FILTER_EXPRESSION_KEY"
ENV_IDENTIFIER_PREFIX = "JSONAPI_FILTER_ID_PREFIX"


@dataclass(frozen=True, slots=True)
class ParserSettings:
    """Limits and wire-format keys shared by parsing and serialization."""

    # 0 disables the limit
    max_tokens: int = DEFAULT_MAX_TOKENS
    expression_key: str = DEFAULT_EXPRESSION_KEY
    identifier_prefix: str = DEFAULT_IDENTIFIER_PREFIX

    def __post_init__(self) -> None:
        if self.max_tokens < 0:
            raise ValueError("max_tokens must be non-negative")
        if not self.expression_key:
            raise ValueError("expression_key must not be empty")
        if not self.identifier_prefix:
            raise ValueError("identifier_prefix must not be empty")

    @classmethod
    def from_env(cls) -> ParserSettings:
        """Build settings from `JSONAPI_FILTER_*` environment variables."""
        raw_limit = os.getenv(ENV_MAX_TOKENS, "").strip()
        if raw_limit:
            try:
                max_tokens = int(raw_limit)
            except ValueError:
                raise ValueError(
                    f"{ENV_MAX_TOKENS} must be an integer, got {raw_limit!r}"
                ) from None
        else:
            max_tokens = DEFAULT_MAX_TOKENS

        return cls(
            max_tokens=max_tokens,
            expression_key=os.getenv(ENV_EXPRESSION_KEY) or DEFAULT_EXPRESSION_KEY,
            identifier_prefix=os.getenv(ENV_IDENTIFIER_PREFIX) or DEFAULT_IDENTIFIER_PREFIX,
        )


DEFAULT_SETTINGS = ParserSettings()
