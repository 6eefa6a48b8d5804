"""ceedscope clean / clobber commands - remove build artifacts."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from ceedscope.cli.utils import make_adapter
from ceedscope.core.errors import CeedscopeError

_PATH_ARGUMENT = click.argument(
    "path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path)
)


def _cleanup(ctx: click.Context, path: Path, subcommand: str) -> None:
    adapter = make_adapter(path, verbose=(ctx.obj or {}).get("verbose", False))
    run = adapter.clobber if subcommand == "clobber" else adapter.clean
    try:
        results = asyncio.run(run())
    except CeedscopeError as e:
        raise click.ClickException(e.message) from e

    console = Console(stderr=True)
    if any(r.error for r in results):
        raise click.ClickException(f"Ceedling {subcommand} failed")
    console.print(f"[green]Ceedling {subcommand} done[/green] ({len(results)} project(s))")


@click.command()
@_PATH_ARGUMENT
@click.pass_context
def clean_command(ctx: click.Context, path: Path) -> None:
    """Run 'ceedling clean' for every project.

    PATH is the workspace root (default: current directory).
    """
    _cleanup(ctx, path, "clean")


@click.command()
@_PATH_ARGUMENT
@click.pass_context
def clobber_command(ctx: click.Context, path: Path) -> None:
    """Run 'ceedling clobber' for every project.

    PATH is the workspace root (default: current directory).
    """
    _cleanup(ctx, path, "clobber")
