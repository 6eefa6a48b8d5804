"""ceedscope discover command - list the tests of a workspace."""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console

from ceedscope.cli.utils import load_tree, make_adapter, render_tree


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the tree as JSON")
@click.pass_context
def discover_command(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Discover the Unity tests of a Ceedling workspace.

    PATH is the workspace root (default: current directory).
    """
    console = Console(stderr=True)
    adapter = make_adapter(path, verbose=(ctx.obj or {}).get("verbose", False))
    suite = asyncio.run(load_tree(adapter, console))

    if as_json:
        click.echo(json.dumps(suite.to_dict(), indent=2))
        return
    Console().print(render_tree(suite))
