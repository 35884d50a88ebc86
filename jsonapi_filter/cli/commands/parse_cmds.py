from __future__ import annotations

from typing import Any

import click
import rich_click
from rich.tree import Tree

from jsonapi_filter.expressions import (
    AndFilter,
    AtomicFilter,
    FilterEvaluator,
    FilterExpression,
    NotFilter,
    OrFilter,
    evaluate,
    fold_expression,
)
from jsonapi_filter.transformers import PASSTHROUGH, TransformerMux
from jsonapi_filter.urls import FilterQueryParser

from ..context import CLIContext
from ..options import limit_options, output_options, strict_name_options
from ..runner import CommandOutput, run_command


class _TreeDumper(FilterEvaluator[dict[str, Any]]):
    """JSON-friendly nested dict of an expression."""

    def _fold(self, expr: FilterExpression) -> dict[str, Any]:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=lambda left, right: {"type": "and", "left": left, "right": right},
            or_=lambda left, right: {"type": "or", "left": left, "right": right},
            not_=lambda operand: {"type": "not", "operand": operand},
        )

    def evaluate_atomic(self, f: AtomicFilter) -> dict[str, Any]:
        return {
            "type": "filter",
            "name": f.name,
            "condition": f.condition.value,
            "value": f.value,
        }

    def evaluate_and(self, a: AndFilter) -> dict[str, Any]:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> dict[str, Any]:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> dict[str, Any]:
        return self._fold(n)

    def evaluate_identity(self) -> dict[str, Any]:
        return {"type": "identity"}

    def evaluate_custom(self, value: Any) -> dict[str, Any]:
        return {"type": "custom", "repr": str(value)}


def _tree_node(label: str, *children: Tree) -> Tree:
    node = Tree(f"[cyan]{label}[/cyan]")
    node.children.extend(children)
    return node


class _RichTreeBuilder(FilterEvaluator[Tree]):
    def _fold(self, expr: FilterExpression) -> Tree:
        return fold_expression(
            expr,
            lambda leaf: evaluate(self, leaf),
            and_=lambda left, right: _tree_node("AND", left, right),
            or_=lambda left, right: _tree_node("OR", left, right),
            not_=lambda operand: _tree_node("NOT", operand),
        )

    def evaluate_atomic(self, f: AtomicFilter) -> Tree:
        return Tree(f"[bold]{f.name}[/bold] {f.condition.value} [green]'{f.value}'[/green]")

    def evaluate_and(self, a: AndFilter) -> Tree:
        return self._fold(a)

    def evaluate_or(self, o: OrFilter) -> Tree:
        return self._fold(o)

    def evaluate_not(self, n: NotFilter) -> Tree:
        return self._fold(n)

    def evaluate_identity(self) -> Tree:
        return Tree("[dim]TRUE[/dim]")

    def evaluate_custom(self, value: Any) -> Tree:
        return Tree(f"[magenta]{value}[/magenta]")


def _parser_for(ctx: CLIContext, strict_names: tuple[str, ...]) -> FilterQueryParser:
    if strict_names:
        mux = TransformerMux({name: PASSTHROUGH for name in strict_names}, strict=True)
        return FilterQueryParser(mux, settings=ctx.settings)
    return FilterQueryParser(settings=ctx.settings)


@click.command(name="parse", cls=rich_click.RichCommand)
@click.argument("query")
@strict_name_options
@limit_options
@output_options
@click.pass_obj
def parse_cmd(ctx: CLIContext, query: str, strict_names: tuple[str, ...]) -> None:
    """Parse a query string or URL and print the canonical expression."""

    def fn(ctx: CLIContext, _warnings: list[str]) -> CommandOutput:
        expr = _parser_for(ctx, strict_names).parse_url(query)
        data = {"expression": str(expr), "tree": evaluate(_TreeDumper(), expr)}
        return CommandOutput(data=data, renderable=data["expression"])

    run_command(ctx, command="parse", fn=fn)


@click.command(name="tree", cls=rich_click.RichCommand)
@click.argument("query")
@strict_name_options
@limit_options
@output_options
@click.pass_obj
def tree_cmd(ctx: CLIContext, query: str, strict_names: tuple[str, ...]) -> None:
    """Render the parsed expression as a tree."""

    def fn(ctx: CLIContext, _warnings: list[str]) -> CommandOutput:
        expr = _parser_for(ctx, strict_names).parse_url(query)
        return CommandOutput(
            data=evaluate(_TreeDumper(), expr),
            renderable=evaluate(_RichTreeBuilder(), expr),
        )

    run_command(ctx, command="tree", fn=fn)
