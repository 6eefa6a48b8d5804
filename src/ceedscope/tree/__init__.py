"""Test tree model, construction and lookups."""

from ceedscope.tree.builder import TreeBuilder, new_root
from ceedscope.tree.models import Node, SuiteNode, TestNode
from ceedscope.tree.ops import (
    find_node,
    find_parent,
    iter_dfs,
    iter_tests,
    resolve_run_targets,
    strip_to_file_id,
)

__all__ = [
    "Node",
    "SuiteNode",
    "TestNode",
    "TreeBuilder",
    "find_node",
    "find_parent",
    "iter_dfs",
    "iter_tests",
    "new_root",
    "resolve_run_targets",
    "strip_to_file_id",
]
