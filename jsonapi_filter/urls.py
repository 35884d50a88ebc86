"""
Request and URL helpers.

Framework-agnostic glue between `httpx` request/URL objects and the query codec.
Server code typically creates one `FilterQueryParser` per resource type (each with
its own transformer) and calls it for every incoming request.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import httpx

from .codec import build_query, is_filter_key, parse_filter
from .config import DEFAULT_SETTINGS, ParserSettings
from .expressions import FilterExpression
from .transformers import TransformerLike, as_transformer


_URL_PREFIX = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*://|/)")


def query_params(url: httpx.URL | str) -> httpx.QueryParams:
    """Query parameters of a URL or a bare query string (with or without `?`).

    A string is a URL only when it starts with a scheme (`https://`) or a `/` path.
    """
    if isinstance(url, str) and not _URL_PREFIX.match(url):
        return httpx.QueryParams(url.lstrip("?"))
    return httpx.URL(url).params


class FilterQueryParser:
    """Parses the filter of incoming requests with a fixed transformer and settings."""

    def __init__(
        self,
        transformer: TransformerLike | None = None,
        *,
        settings: ParserSettings | None = None,
    ) -> None:
        self.transformer = as_transformer(transformer)
        self.settings = settings or DEFAULT_SETTINGS

    def parse(self, params: Mapping[str, Any]) -> FilterExpression:
        return parse_filter(params, self.transformer, settings=self.settings)

    def parse_url(self, url: httpx.URL | str) -> FilterExpression:
        return self.parse(query_params(url))

    def parse_request(self, request: httpx.Request) -> FilterExpression:
        return self.parse(request.url.params)


def parse_url(
    url: httpx.URL | str,
    transformer: TransformerLike | None = None,
    *,
    settings: ParserSettings | None = None,
) -> FilterExpression:
    """Parse the filter carried by a URL or query string."""
    return FilterQueryParser(transformer, settings=settings).parse_url(url)


def apply_filter(
    url: httpx.URL | str,
    expr: FilterExpression,
    *,
    settings: ParserSettings | None = None,
) -> httpx.URL:
    """Return the URL with its filter parameters replaced by the serialized expression.

    Unrelated parameters (pagination, sorting, ...) are kept.
    """
    settings = settings or DEFAULT_SETTINGS
    url = httpx.URL(url)
    kept = [
        (key, value)
        for key, value in url.params.multi_items()
        if key != settings.expression_key and not is_filter_key(key)
    ]
    params = httpx.QueryParams(kept).merge(build_query(expr, settings=settings))
    return url.copy_with(params=params)
