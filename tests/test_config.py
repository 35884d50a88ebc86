"""Tests for parser settings."""

from __future__ import annotations

import pytest

from jsonapi_filter.config import DEFAULT_SETTINGS, ParserSettings


def test_defaults() -> None:
    assert DEFAULT_SETTINGS.max_tokens == 256
    assert DEFAULT_SETTINGS.expression_key == "q"
    assert DEFAULT_SETTINGS.identifier_prefix == "p"


@pytest.mark.parametrize(
    "kwargs",
    [{"max_tokens": -1}, {"expression_key": ""}, {"identifier_prefix": ""}],
)
def test_invalid_settings(kwargs: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        ParserSettings(**kwargs)  # type: ignore[arg-type]


def test_settings_are_frozen() -> None:
    with pytest.raises(AttributeError):
        DEFAULT_SETTINGS.max_tokens = 1  # type: ignore[misc]


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JSONAPI_FILTER_MAX_TOKENS", raising=False)
    monkeypatch.delenv("JSONAPI_FILTER_EXPRESSION_KEY", raising=False)
    monkeypatch.delenv("JSONAPI_FILTER_ID_PREFIX", raising=False)
    assert ParserSettings.from_env() == DEFAULT_SETTINGS


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONAPI_FILTER_MAX_TOKENS", " 0 ")
    monkeypatch.setenv("JSONAPI_FILTER_EXPRESSION_KEY", "filter")
    monkeypatch.setenv("JSONAPI_FILTER_ID_PREFIX", "f")
    settings = ParserSettings.from_env()
    assert settings == ParserSettings(max_tokens=0, expression_key="filter", identifier_prefix="f")


def test_from_env_rejects_non_integer_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONAPI_FILTER_MAX_TOKENS", "lots")
    with pytest.raises(ValueError, match="JSONAPI_FILTER_MAX_TOKENS"):
        ParserSettings.from_env()
