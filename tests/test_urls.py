"""Tests for httpx URL and request helpers."""

from __future__ import annotations

import httpx
import pytest

from jsonapi_filter.codec import filter_key
from jsonapi_filter.exceptions import TransformError
from jsonapi_filter.expressions import AndFilter, AtomicFilter, FilterCondition, IdentityFilter
from jsonapi_filter.transformers import TransformerMux
from jsonapi_filter.urls import FilterQueryParser, apply_filter, parse_url, query_params

QUERY = (
    "q=p1+AND+NOT+p2"
    "&filter%5Bp1%5D%5Bname%5D=status&filter%5Bp1%5D%5Bcondition%5D=eq"
    "&filter%5Bp1%5D%5Bvalue%5D=open"
    "&filter%5Bp2%5D%5Bname%5D=title&filter%5Bp2%5D%5Bcondition%5D=contains"
    "&filter%5Bp2%5D%5Bvalue%5D=draft"
    "&page%5Bsize%5D=20"
)
EXPECTED = "([status eq 'open'] && ![title contains 'draft'])"


def test_query_params_accepts_urls_and_query_strings() -> None:
    for source in (
        f"https://api.example.com/articles?{QUERY}",
        f"/articles?{QUERY}",
        f"?{QUERY}",
        QUERY,
        httpx.URL(f"https://api.example.com/articles?{QUERY}"),
    ):
        params = query_params(source)
        assert params["q"] == "p1 AND NOT p2"
        assert params[filter_key("p2", "value")] == "draft"


def test_parse_url() -> None:
    assert str(parse_url(f"https://api.example.com/articles?{QUERY}")) == EXPECTED


def test_parse_url_without_filter() -> None:
    assert parse_url("https://api.example.com/articles?page[size]=5") == IdentityFilter()


def test_parser_uses_its_transformer() -> None:
    parser = FilterQueryParser(TransformerMux({"status": lambda f: f}, strict=True))
    with pytest.raises(TransformError) as exc:
        parser.parse_url(QUERY)
    assert exc.value.name == "title"


def test_parse_request() -> None:
    request = httpx.Request("GET", f"https://api.example.com/articles?{QUERY}")
    assert str(FilterQueryParser().parse_request(request)) == EXPECTED


def test_apply_filter_replaces_filter_params() -> None:
    expr = AndFilter(
        AtomicFilter("status", FilterCondition.EQ, "closed"),
        AtomicFilter("age", FilterCondition.GT, "3"),
    )
    url = apply_filter(f"https://api.example.com/articles?{QUERY}", expr)
    params = url.params
    assert params["q"] == "p1 AND p2"
    assert params["page[size]"] == "20"
    assert params["filter[p2][name]"] == "age"
    assert params["filter[p1][value]"] == "closed"
    assert url.host == "api.example.com"
    assert url.path == "/articles"
    assert parse_url(url) == expr


def test_query_string_with_url_valued_filter() -> None:
    """A bare query string stays a query string when a value holds a URL."""
    query = (
        "q=p1&filter[p1][name]=homepage&filter[p1][condition]=eq"
        "&filter[p1][value]=https://example.com"
    )
    assert str(parse_url(query)) == "[homepage eq 'https://example.com']"
    assert str(parse_url(f"?{query}")) == "[homepage eq 'https://example.com']"
    assert str(parse_url(f"http://api.example.com/sites?{query}")) == (
        "[homepage eq 'https://example.com']"
    )
