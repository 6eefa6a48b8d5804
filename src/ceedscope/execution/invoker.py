"""Spawning the build tool and collecting its output."""

from __future__ import annotations

import asyncio
import contextlib
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import psutil
import structlog

from ceedscope.config.constants import DEFAULT_TOOL

log = structlog.get_logger(__name__)

# CSI / OSC escape sequences as emitted by colorizing terminals
ANSI_ESCAPE_RE = re.compile(
    r"[\u001B\u009B][\[\]()#;?]*"
    r"(?:(?:(?:(?:;[-a-zA-Z\d/#&.:=?%@~_]+)*"
    r"|[a-zA-Z\d]+(?:;[-a-zA-Z\d/#&.:=?%@~_]*)*)?\u0007)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PR-TZcf-nq-uy=><~]))"
)


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one build tool invocation.

    ``returncode`` is None when the process could not be spawned; the
    reason is then in ``spawn_error``.
    """

    returncode: int | None
    stdout: str
    stderr: str
    spawn_error: str | None = None

    @property
    def error(self) -> bool:
        return self.spawn_error is not None or self.returncode != 0


def kill_process_tree(pid: int) -> None:
    """Kill ``pid`` and all of its descendants."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return
    for proc in [*children, parent]:
        with contextlib.suppress(psutil.NoSuchProcess):
            proc.kill()


class BuildToolInvoker:
    """Runs ``<tool> <args...>`` through a shell.

    At most one process is tracked at a time; callers serialize
    invocations through the execution serializer.
    """

    def __init__(
        self,
        tool: str = DEFAULT_TOOL,
        *,
        shell_path: str | None = None,
        ansi_escape_sequences_removed: bool = True,
    ) -> None:
        self.tool = tool
        self.shell_path = shell_path
        self.ansi_escape_sequences_removed = ansi_escape_sequences_removed
        self._process: asyncio.subprocess.Process | None = None

    def command_line(self, args: Sequence[str]) -> str:
        return " ".join([self.tool, *args])

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def execute(self, args: Sequence[str], cwd: Path | str) -> ToolResult:
        """Run the tool to completion and return its output."""
        command = self.command_line(args)
        log.debug("tool_exec", command=command, cwd=str(cwd), shell=self.shell_path)
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
                executable=self.shell_path,
            )
        except OSError as e:
            log.error("tool_spawn_failed", command=command, cwd=str(cwd), error=str(e))
            return ToolResult(returncode=None, stdout="", stderr=str(e), spawn_error=str(e))

        self._process = proc
        try:
            stdout_bytes, stderr_bytes = await proc.communicate()
        finally:
            if proc.returncode is None:
                log.info("tool_exec_abandoned", command=command, pid=proc.pid)
                kill_process_tree(proc.pid)
            if self._process is proc:
                self._process = None

        stdout = stdout_bytes.decode(errors="replace")
        stderr = stderr_bytes.decode(errors="replace")
        if self.ansi_escape_sequences_removed:
            stdout = strip_ansi(stdout)
            stderr = strip_ansi(stderr)

        log.debug("tool_exec_done", command=command, returncode=proc.returncode)
        return ToolResult(returncode=proc.returncode, stdout=stdout, stderr=stderr)

    def cancel(self) -> bool:
        """Kill the in-flight process tree. Returns False when nothing was running."""
        proc = self._process
        if proc is None or proc.returncode is not None:
            return False
        log.info("tool_cancel", pid=proc.pid)
        kill_process_tree(proc.pid)
        return True
