"""Ceedscope CLI - ceedscope command."""

import click

from ceedscope.cli.cleanup import clean_command, clobber_command
from ceedscope.cli.discover import discover_command
from ceedscope.cli.run import run_command
from ceedscope.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="ceedscope")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Ceedscope - discover and run Ceedling unit tests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(discover_command, name="discover")
cli.add_command(run_command, name="run")
cli.add_command(clean_command, name="clean")
cli.add_command(clobber_command, name="clobber")


if __name__ == "__main__":
    cli()
