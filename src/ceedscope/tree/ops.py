"""Lookups over the test tree."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ceedscope.config.constants import ROOT_SUITE_ID
from ceedscope.core.errors import InternalError
from ceedscope.tree.models import Node, SuiteNode, TestNode

ID_SEPARATOR = "::"


def strip_to_file_id(node_id: str) -> str:
    """Drop the ``::function`` part of an id.

    Ceedling always runs a whole test file, so run requests are widened to
    the file suite.
    """
    return node_id.split(ID_SEPARATOR, 1)[0]


def iter_dfs(root: Node) -> Iterator[Node]:
    """Pre-order depth-first traversal."""
    yield root
    if isinstance(root, SuiteNode):
        for child in root.children:
            yield from iter_dfs(child)


def iter_tests(root: Node) -> Iterator[TestNode]:
    for node in iter_dfs(root):
        if isinstance(node, TestNode):
            yield node


def find_node(root: Node, node_id: str) -> Node | None:
    for node in iter_dfs(root):
        if node.id == node_id:
            return node
    return None


def find_parent(root: SuiteNode, node_id: str) -> SuiteNode | None:
    """Return the suite directly containing ``node_id``.

    The root is reported as its own parent.
    """
    if root.id == node_id:
        return root
    stack: list[SuiteNode] = [root]
    while stack:
        suite = stack.pop()
        for child in suite.children:
            if child.id == node_id:
                return suite
        stack.extend(
            reversed([c for c in suite.children if isinstance(c, SuiteNode)])
        )
    return None


def resolve_run_targets(root: SuiteNode, ids: Iterable[str]) -> list[SuiteNode]:
    """Map requested ids to the suites that must be executed.

    Tests are replaced by their parent suite, the root by its children.
    Unknown ids are skipped. The result is de-duplicated, first occurrence
    kept.

    Raises:
        InternalError: If a test node has no parent in the tree.
    """
    suites: list[SuiteNode] = []
    for node_id in ids:
        node = find_node(root, node_id)
        if node is None:
            continue
        if isinstance(node, TestNode):
            parent = find_parent(root, node.id)
            if parent is None:
                raise InternalError.unexpected(
                    f"Failed to find parent of the test '{node.id}'", test_id=node.id
                )
            suites.append(parent)
        elif node.id == ROOT_SUITE_ID:
            suites.extend(c for c in node.children if isinstance(c, SuiteNode))
        else:
            suites.append(node)

    seen: set[str] = set()
    unique: list[SuiteNode] = []
    for suite in suites:
        if suite.id not in seen:
            seen.add(suite.id)
            unique.append(suite)
    return unique
