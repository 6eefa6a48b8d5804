"""ceedscope run command - run tests and report their states."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from ceedscope.adapter import CeedlingAdapter, RunEvent
from ceedscope.cli.utils import load_tree, make_adapter
from ceedscope.config.constants import ROOT_SUITE_ID
from ceedscope.events import TestEvent

_STATE_STYLES = {
    "passed": "[green]PASS[/green]",
    "failed": "[red]FAIL[/red]",
    "skipped": "[yellow]SKIP[/yellow]",
    "errored": "[bold red]ERROR[/bold red]",
}


async def run_tests(
    adapter: CeedlingAdapter, ids: tuple[str, ...], console: Console
) -> list[TestEvent]:
    """Discover, run ``ids`` (everything when empty) and return the terminal states."""
    await load_tree(adapter, console)

    results: list[TestEvent] = []

    def _on_state(event: RunEvent) -> None:
        if isinstance(event, TestEvent) and event.state != "running":
            results.append(event)

    unsubscribe = adapter.test_states.subscribe(_on_state)
    try:
        await adapter.run(list(ids) or [ROOT_SUITE_ID])
    finally:
        unsubscribe()
    return results


@click.command()
@click.argument("ids", nargs=-1)
@click.option(
    "--workspace",
    "-w",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: current directory)",
)
@click.option("--output", "show_output", is_flag=True, help="Print Ceedling output of failures")
@click.pass_context
def run_command(
    ctx: click.Context, ids: tuple[str, ...], workspace: Path, show_output: bool
) -> None:
    """Run tests.

    IDS are test or suite ids as printed by 'ceedscope discover --json'.
    Whole test files are always run. Without IDS every test is run.
    """
    console = Console()
    adapter = make_adapter(workspace, verbose=(ctx.obj or {}).get("verbose", False))
    results = asyncio.run(run_tests(adapter, ids, Console(stderr=True)))

    for event in results:
        console.print(f"{_STATE_STYLES[event.state]} {escape(event.test_id)}")
        for decoration in event.decorations:
            console.print(f"    line {decoration.line + 1}: {escape(decoration.message)}")
        if show_output and event.state in ("failed", "errored") and event.message:
            console.print(escape(event.message), style="dim")

    failures = [e for e in results if e.state in ("failed", "errored")]
    console.print(
        f"\n{len(results)} tests, {len(failures)} failed, "
        f"{sum(1 for e in results if e.state == 'skipped')} skipped"
    )
    if failures:
        ctx.exit(1)
