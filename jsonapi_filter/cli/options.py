from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import TypeVar

import click

from .context import CLIContext

F = TypeVar("F", bound=Callable[..., object])


def _set_json(ctx: click.Context, _param: click.Parameter, value: bool) -> bool:
    if not value:
        return value
    obj = ctx.obj
    if isinstance(obj, CLIContext):
        obj.output = "json"
    return value


def _set_max_tokens(ctx: click.Context, _param: click.Parameter, value: int | None) -> int | None:
    if value is None:
        return value
    obj = ctx.obj
    if isinstance(obj, CLIContext):
        obj.settings = dataclasses.replace(obj.settings, max_tokens=value)
    return value


def output_options(fn: F) -> F:
    fn = click.option(
        "--json",
        is_flag=True,
        help="Emit a JSON result document.",
        callback=_set_json,
        expose_value=False,
    )(fn)
    return fn


def limit_options(fn: F) -> F:
    """Per-command override of the `JSONAPI_FILTER_MAX_TOKENS` token limit."""
    fn = click.option(
        "--max-tokens",
        type=click.IntRange(min=0),
        default=None,
        help="Token limit for the q expression (0 disables it).",
        callback=_set_max_tokens,
        expose_value=False,
    )(fn)
    return fn


def strict_name_options(fn: F) -> F:
    fn = click.option(
        "--strict-name",
        "strict_names",
        multiple=True,
        help="Allowed filter name; repeat to allow several. Other names are rejected.",
    )(fn)
    return fn
