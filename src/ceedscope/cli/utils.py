"""CLI utilities."""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ceedscope.adapter import CeedlingAdapter
from ceedscope.config.loader import load_config
from ceedscope.core.errors import ConfigError
from ceedscope.core.logging import configure_logging
from ceedscope.events import LoadFinishedEvent, LoadStartedEvent
from ceedscope.tree.models import SuiteNode, TestNode


def make_adapter(workspace: Path, *, verbose: bool = False) -> CeedlingAdapter:
    """Create an adapter for ``workspace`` from its configuration files.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    workspace = workspace.resolve()
    try:
        config = load_config(workspace)
    except ConfigError as e:
        raise click.ClickException(e.message) from e
    if not verbose:
        configure_logging(config=config.logging)
    return CeedlingAdapter(workspace, config)


async def load_tree(adapter: CeedlingAdapter, console: Console) -> SuiteNode:
    """Run discovery and return the tree.

    Per-project problems are printed as warnings. A failed load raises.
    """
    finished: list[LoadFinishedEvent] = []

    def _on_load(event: LoadStartedEvent | LoadFinishedEvent) -> None:
        if isinstance(event, LoadFinishedEvent):
            finished.append(event)

    unsubscribe = adapter.tests.subscribe(_on_load)
    try:
        await adapter.load()
    finally:
        unsubscribe()

    if not finished:
        raise click.ClickException("Discovery did not finish")
    result = finished[-1]
    if result.suite is None:
        raise click.ClickException(result.error_message or "Discovery failed")
    if result.error_message:
        console.print(f"[yellow]Warning:[/yellow] {escape(result.error_message)}")
    return result.suite


def render_tree(suite: SuiteNode) -> Tree:
    """Rich tree of suites and tests, with source lines for tests."""
    tree = Tree(f"[bold]{escape(suite.label)}[/bold]")
    _add_children(tree, suite)
    return tree


def _add_children(branch: Tree, suite: SuiteNode) -> None:
    for child in suite.children:
        if isinstance(child, TestNode):
            branch.add(f"{escape(child.label)} [dim]:{child.line + 1}[/dim]")
            continue
        style = "bold magenta" if child.is_project_root else "cyan"
        _add_children(branch.add(f"[{style}]{escape(child.label)}[/{style}]"), child)
