from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import jsonapi_filter
from jsonapi_filter.cli.context import exit_code_for_exception
from jsonapi_filter.cli.errors import CLIError
from jsonapi_filter.cli.logging import level_for_verbosity
from jsonapi_filter.cli.main import cli
from jsonapi_filter.exceptions import (
    FilterError,
    FilterErrorGroup,
    FilterSyntaxError,
    FilterValidationError,
    TransformError,
    UnsupportedOperationError,
)

QUERY = (
    "q=p1+OR+NOT+p2"
    "&filter[p1][name]=status&filter[p1][condition]=eq&filter[p1][value]=open"
    "&filter[p2][name]=age&filter[p2][condition]=lt&filter[p2][value]=18"
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "JSONAPI_FILTER_MAX_TOKENS",
        "JSONAPI_FILTER_EXPRESSION_KEY",
        "JSONAPI_FILTER_ID_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)


def test_cli_no_args_shows_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage:" in result.output


def test_cli_version_table_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 0
    assert f"jsonapi-filter {jsonapi_filter.__version__}" in result.output


def test_cli_version_json_output() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["version", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["ok"] is True
    assert payload["command"] == "version"
    assert payload["data"]["version"] == jsonapi_filter.__version__
    assert "durationMs" in payload["meta"]


def test_cli_parse_prints_canonical_expression() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", QUERY])
    assert result.exit_code == 0
    assert "([status eq 'open'] || ![age lt '18'])" in result.output


def test_cli_parse_accepts_full_url() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", f"https://api.example.com/users?{QUERY}"])
    assert result.exit_code == 0
    assert "[status eq 'open']" in result.output


def test_cli_parse_json_includes_tree() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--json", "parse", QUERY])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    tree = payload["data"]["tree"]
    assert tree["type"] == "or"
    assert tree["left"] == {"type": "filter", "name": "status", "condition": "eq", "value": "open"}
    assert tree["right"]["type"] == "not"
    assert tree["right"]["operand"]["name"] == "age"


def test_cli_parse_without_filter_is_identity() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", "page[size]=10", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output.strip())
    assert payload["data"] == {"expression": "TRUE", "tree": {"type": "identity"}}


def test_cli_parse_syntax_error_exit_code() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", "q=AND+p1"])
    assert result.exit_code == 2
    assert "Error: Expected identifier at position 0" in result.output
    assert "Hint:" in result.output


def test_cli_parse_validation_error_json() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", "q=p1", "--json"])
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["ok"] is False
    assert payload["error"]["type"] == "FilterValidationError"
    assert payload["error"]["details"]["identifier"] == "p1"


def test_cli_parse_strict_names() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", QUERY, "--strict-name", "status"])
    assert result.exit_code == 3
    assert "Unknown filter name 'age'" in result.output

    result = runner.invoke(
        cli, ["parse", QUERY, "--strict-name", "status", "--strict-name", "age"]
    )
    assert result.exit_code == 0


def test_cli_tree_renders_operators() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["tree", QUERY])
    assert result.exit_code == 0
    assert "OR" in result.output
    assert "NOT" in result.output
    assert "status eq 'open'" in result.output


def test_cli_build_json() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["build", "--filter", "age:gte:21", "--filter", "name:contains:a:b", "--json"],
    )
    assert result.exit_code == 0
    params = json.loads(result.output.strip())["data"]["params"]
    assert params["q"] == "p1 AND p2"
    assert params["filter[p1][condition]"] == "gte"
    assert params["filter[p2][value]"] == "a:b"


def test_cli_build_or_negated() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["build", "--filter", "a:eq:1", "--filter", "b:eq:2", "--op", "or", "--negate", "--json"],
    )
    assert result.exit_code == 0
    params = json.loads(result.output.strip())["data"]["params"]
    assert params["q"] == "NOT p1 OR NOT p2"


def test_cli_build_with_url_keeps_other_params() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["build", "--filter", "a:eq:1", "--url", "https://api.example.com/x?page=2&q=old"],
    )
    assert result.exit_code == 0
    assert "https://api.example.com/x?" in result.output
    assert "page=2" in result.output
    assert "old" not in result.output


def test_cli_build_rejects_bad_filter_spec() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["build", "--filter", "age-gte-21"])
    assert result.exit_code == 2
    assert "NAME:CONDITION:VALUE" in result.output

    result = runner.invoke(cli, ["build", "--filter", "age:like:21"])
    assert result.exit_code == 2
    assert "Unknown condition 'like'" in result.output


def test_cli_invalid_env_is_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONAPI_FILTER_MAX_TOKENS", "many")
    runner = CliRunner()
    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 2
    assert "JSONAPI_FILTER_MAX_TOKENS" in result.output


def test_cli_token_limit_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONAPI_FILTER_MAX_TOKENS", "1")
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", QUERY])
    assert result.exit_code == 2
    assert "limit" in result.output


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (CLIError("x", exit_code=4), 4),
        (FilterSyntaxError("x"), 2),
        (FilterValidationError("x"), 2),
        (TransformError("x"), 3),
        (UnsupportedOperationError("x"), 3),
        (FilterErrorGroup([FilterError("a"), FilterError("b")]), 2),
        (RuntimeError("x"), 1),
    ],
)
def test_exit_code_for_exception(exc: Exception, code: int) -> None:
    assert exit_code_for_exception(exc) == code


def test_level_for_verbosity() -> None:
    assert level_for_verbosity(0) == 30
    assert level_for_verbosity(1) == 20
    assert level_for_verbosity(3) == 10


def test_cli_max_tokens_option_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONAPI_FILTER_MAX_TOKENS", "1")
    runner = CliRunner()
    result = runner.invoke(cli, ["parse", QUERY, "--max-tokens", "0"])
    assert result.exit_code == 0

    result = runner.invoke(
        cli, ["build", "--filter", "a:eq:1", "--filter", "b:eq:2", "--max-tokens", "2"]
    )
    assert result.exit_code == 3
    assert "limit is 2" in result.output


def test_cli_build_error_json_has_hint() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["build", "--filter", "nope", "--json"])
    assert result.exit_code == 2
    payload = json.loads(result.output.strip())
    assert payload["error"]["type"] == "usage_error"
    assert payload["error"]["hint"] == "Example: --filter age:gte:21"
    assert payload["error"]["details"] == {"filter": "nope"}
