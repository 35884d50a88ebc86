from __future__ import annotations

import click
import rich_click

import jsonapi_filter
from jsonapi_filter.config import ParserSettings

from .context import CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="jsonapi-filter",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option("--json", "json_flag", is_flag=True, help="Emit JSON result documents.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.version_option(version=jsonapi_filter.__version__, prog_name="jsonapi-filter")
@click.pass_context
def cli(click_ctx: click.Context, *, json_flag: bool, quiet: bool, verbose: int) -> None:
    if click_ctx.invoked_subcommand is None:
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    try:
        settings = ParserSettings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    click_ctx.obj = CLIContext(
        output="json" if json_flag else "table",
        quiet=quiet,
        verbosity=verbose,
        settings=settings,
    )

    previous_logging = configure_logging(verbosity=verbose)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.build_cmd import build_cmd as _build_cmd  # noqa: E402
from .commands.parse_cmds import parse_cmd as _parse_cmd  # noqa: E402
from .commands.parse_cmds import tree_cmd as _tree_cmd  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_version_cmd)
cli.add_command(_parse_cmd)
cli.add_command(_tree_cmd)
cli.add_command(_build_cmd)
