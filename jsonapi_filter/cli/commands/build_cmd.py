from __future__ import annotations

import click
import httpx
import rich_click

from jsonapi_filter.codec import build_query
from jsonapi_filter.expressions import AtomicFilter, Filter, FilterExpression
from jsonapi_filter.urls import apply_filter

from ..context import CLIContext
from ..errors import invalid_filter_spec
from ..options import limit_options, output_options
from ..runner import CommandOutput, run_command


def _parse_filter_spec(spec: str) -> AtomicFilter:
    parts = spec.split(":", 2)
    if len(parts) != 3:
        raise invalid_filter_spec(spec)
    name, condition, value = parts
    try:
        return AtomicFilter(name, condition, value)  # type: ignore[arg-type]
    except ValueError as e:
        raise invalid_filter_spec(spec, str(e)) from e


@click.command(name="build", cls=rich_click.RichCommand)
@click.option(
    "--filter",
    "filters",
    multiple=True,
    required=True,
    help="NAME:CONDITION:VALUE, e.g. age:gte:21. Repeat for several filters.",
)
@click.option(
    "--op",
    type=click.Choice(["and", "or"]),
    default="and",
    show_default=True,
    help="Operator joining the filters.",
)
@click.option("--negate", is_flag=True, help="Negate each filter.")
@click.option("--url", "base_url", default=None, help="Append the query to this URL.")
@limit_options
@output_options
@click.pass_obj
def build_cmd(
    ctx: CLIContext,
    filters: tuple[str, ...],
    op: str,
    negate: bool,
    base_url: str | None,
) -> None:
    """Build filter query parameters from NAME:CONDITION:VALUE specs."""

    def fn(ctx: CLIContext, _warnings: list[str]) -> CommandOutput:
        leaves: list[FilterExpression] = [_parse_filter_spec(spec) for spec in filters]
        if negate:
            leaves = [~leaf for leaf in leaves]
        expr = Filter.and_(*leaves) if op == "and" else Filter.or_(*leaves)

        params = build_query(expr, settings=ctx.settings)
        if base_url is not None:
            text = str(apply_filter(base_url, expr, settings=ctx.settings))
        else:
            text = str(httpx.QueryParams(params))
        return CommandOutput(data={"params": params, "query": text}, renderable=text)

    run_command(ctx, command="build", fn=fn)
