from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import click
from rich.console import Console, RenderableType

from .context import CLIContext, error_info_for_exception, exit_code_for_exception
from .results import CommandMeta, CommandResult, ErrorInfo


@dataclass(frozen=True, slots=True)
class CommandOutput:
    data: Any | None = None
    renderable: RenderableType | None = None  # Table-mode rendering; defaults to data
    warnings: list[str] | None = None
    exit_code: int = 0


def _build_result(
    *,
    ok: bool,
    command: str,
    started_at: float,
    data: Any | None,
    warnings: list[str],
    error: ErrorInfo | None = None,
) -> CommandResult:
    duration_ms = int(max(0.0, (time.time() - started_at) * 1000))
    return CommandResult(
        ok=ok,
        command=command,
        data=data,
        warnings=warnings,
        meta=CommandMeta(duration_ms=duration_ms),
        error=error,
    )


def _emit_json(result: CommandResult) -> None:
    payload = result.model_dump(by_alias=True, mode="json")
    sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")


def _emit_warnings(*, ctx: CLIContext, warnings: list[str]) -> None:
    if ctx.quiet or not warnings:
        return
    stderr = Console(file=sys.stderr, force_terminal=False)
    for w in warnings:
        stderr.print(f"Warning: {w}")


def _emit_error(error: ErrorInfo) -> None:
    stderr = Console(file=sys.stderr, force_terminal=False, highlight=False)
    stderr.print(f"Error: {error.message}", markup=False, soft_wrap=True)
    if error.hint:
        stderr.print(f"Hint: {error.hint}", markup=False, soft_wrap=True)


CommandFn = Callable[[CLIContext, list[str]], CommandOutput]


def run_command(ctx: CLIContext, *, command: str, fn: CommandFn) -> None:
    started = time.time()
    warnings: list[str] = []
    try:
        out = fn(ctx, warnings)
        result = _build_result(
            ok=True,
            command=command,
            started_at=started,
            data=out.data,
            warnings=(out.warnings or warnings),
        )
        if ctx.output == "json":
            _emit_json(result)
        else:
            stdout = Console(highlight=False)
            renderable = out.renderable if out.renderable is not None else out.data
            if isinstance(renderable, str):
                stdout.print(renderable, markup=False, soft_wrap=True)
            elif renderable is not None:
                stdout.print(renderable)
            _emit_warnings(ctx=ctx, warnings=result.warnings)
        raise click.exceptions.Exit(out.exit_code)
    except click.exceptions.Exit:
        raise
    except Exception as exc:
        code = exit_code_for_exception(exc)
        error = error_info_for_exception(exc)
        if ctx.output == "json":
            _emit_json(
                _build_result(
                    ok=False,
                    command=command,
                    started_at=started,
                    data=None,
                    warnings=warnings,
                    error=error,
                )
            )
        else:
            _emit_error(error)
        raise click.exceptions.Exit(code) from exc
