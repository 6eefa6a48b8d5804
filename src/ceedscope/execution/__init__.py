"""Build tool execution: serialization, spawning and command construction."""

from ceedscope.execution.commands import (
    file_list_args,
    file_types,
    is_modern_version,
    parse_file_list,
    parse_version,
    project_args,
    suite_command_args,
)
from ceedscope.execution.invoker import BuildToolInvoker, ToolResult, kill_process_tree, strip_ansi
from ceedscope.execution.serializer import ExecutionSerializer

__all__ = [
    "BuildToolInvoker",
    "ExecutionSerializer",
    "ToolResult",
    "file_list_args",
    "file_types",
    "is_modern_version",
    "kill_process_tree",
    "parse_file_list",
    "parse_version",
    "project_args",
    "strip_ansi",
    "suite_command_args",
]
