from __future__ import annotations

import platform

import click
import rich_click

import jsonapi_filter

from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command


@click.command(name="version", cls=rich_click.RichCommand)
@output_options
@click.pass_obj
def version_cmd(ctx: CLIContext) -> None:
    """Show package and interpreter versions."""

    def fn(_: CLIContext, _warnings: list[str]) -> CommandOutput:
        data = {
            "version": jsonapi_filter.__version__,
            "pythonVersion": platform.python_version(),
            "platform": platform.platform(),
        }
        return CommandOutput(data=data, renderable=f"jsonapi-filter {data['version']}")

    run_command(ctx, command="version", fn=fn)
