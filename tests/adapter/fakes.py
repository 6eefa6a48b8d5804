"""Scripted Ceedling, fake debugger and event recorder for adapter tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path

from ceedscope.adapter import CeedlingAdapter
from ceedscope.events import (
    LoadFinishedEvent,
    RunFinishedEvent,
    RunStartedEvent,
    SuiteEvent,
    TestEvent,
    WatchRequest,
)
from ceedscope.execution.invoker import BuildToolInvoker, ToolResult

MODERN_PROJECT_YML = """\
:project:
  :build_root: build
:plugins:
  :enabled:
    - report_tests_log_factory
"""

FOO_SOURCE = """\
#include "unity.h"

void test_ShouldAddTwoNumbers(void){...}

void test_X(void)
{
    TEST_FAIL_MESSAGE("boom");
}
"""

PARAM_SOURCE = """\
#include "unity.h"

TEST_RANGE([1,3,1]) void test_Param(int x){...}
"""


def report_xml(
    *,
    passed: Sequence[str] = (),
    failed: Sequence[tuple[str, int, str]] = (),
    ignored: Sequence[str] = (),
) -> str:
    """CppUnit-style report document."""
    failed_xml = "".join(
        f"<Test><Name>{name}</Name><Location><Line>{line}</Line></Location>"
        f"<Message>{message}</Message></Test>"
        for name, line, message in failed
    )
    passed_xml = "".join(f"<Test><Name>{name}</Name></Test>" for name in passed)
    ignored_xml = "".join(f"<Test><Name>{name}</Name></Test>" for name in ignored)
    return (
        "<TestRun>"
        f"<FailedTests>{failed_xml}</FailedTests>"
        f"<SuccessfulTests>{passed_xml}</SuccessfulTests>"
        f"<IgnoredTests>{ignored_xml}</IgnoredTests>"
        "</TestRun>"
    )


class FakeCeedling(BuildToolInvoker):
    """Answers Ceedling sub-commands from canned data and records every call.

    ``test:<file>`` writes ``reports[<file>]`` (when present) to the report
    artifact of the working directory.
    """

    def __init__(
        self,
        *,
        version: str = "1.0.0",
        files: dict[str, list[str]] | None = None,
        reports: dict[str, str] | None = None,
        report_filename: str = "cppunit_tests_report.xml",
    ) -> None:
        super().__init__()
        self.version = version
        self.files = files or {}
        self.reports = reports or {}
        self.report_filename = report_filename
        self.files_by_dir: dict[str, dict[str, list[str]]] = {}
        self.overrides: dict[str, ToolResult] = {}
        self.calls: list[tuple[list[str], Path]] = []
        self.journal: list[str] = []
        self.cancelled = 0

    async def execute(self, args: Sequence[str], cwd: Path | str) -> ToolResult:
        args = list(args)
        command = args[0]
        self.calls.append((args, Path(cwd)))
        self.journal.append(f"exec:{command}")
        # Suspend as a subprocess wait does
        for _ in range(3):
            await asyncio.sleep(0)
        if command in self.overrides:
            return self.overrides[command]
        if command == "version":
            return ToolResult(returncode=0, stdout=f"  Ceedling => {self.version}\n", stderr="")
        if command.startswith("files:"):
            files = self.files_by_dir.get(Path(cwd).name, self.files)
            listing = "".join(f" - {f}\n" for f in files.get(command[len("files:") :], []))
            return ToolResult(returncode=0, stdout=listing, stderr="")
        if command.startswith("test:"):
            return self._run_test(command[len("test:") :], Path(cwd))
        return ToolResult(returncode=0, stdout="", stderr="")

    def _run_test(self, name: str, cwd: Path) -> ToolResult:
        report = self.reports.get(name)
        if report is None:
            return ToolResult(returncode=1, stdout=f"{name} crashed", stderr="segfault")
        path = cwd / "build" / "artifacts" / "test" / self.report_filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report)
        return ToolResult(returncode=0, stdout=f"{name} done", stderr="")

    def cancel(self) -> bool:
        self.cancelled += 1
        return True

    def commands(self) -> list[str]:
        return [args[0] for args, _ in self.calls]


class FakeLauncher:
    def __init__(self, *, starts: bool = True) -> None:
        self.starts = starts
        self.started: list[str] = []
        self.waited: list[str] = []
        self.on_start: Callable[[], None] | None = None

    async def start(self, config_name: str) -> bool:
        self.started.append(config_name)
        if self.on_start is not None:
            self.on_start()
        return self.starts

    async def wait_terminated(self, config_name: str) -> None:
        self.waited.append(config_name)


class Recorder:
    """Collects everything an adapter publishes."""

    def __init__(self, adapter: CeedlingAdapter) -> None:
        self.loads: list[object] = []
        self.states: list[object] = []
        self.watches: list[WatchRequest] = []
        adapter.tests.subscribe(self.loads.append)
        adapter.test_states.subscribe(self.states.append)
        adapter.watches.subscribe(self.watches.append)

    @property
    def finished(self) -> LoadFinishedEvent:
        events = [e for e in self.loads if isinstance(e, LoadFinishedEvent)]
        assert events, "load did not finish"
        return events[-1]

    def test_events(self, state: str | None = None) -> list[TestEvent]:
        return [
            e
            for e in self.states
            if isinstance(e, TestEvent) and (state is None or e.state == state)
        ]

    def kinds(self) -> list[str]:
        kinds: list[str] = []
        for event in self.states:
            if isinstance(event, RunStartedEvent):
                kinds.append("run-started")
            elif isinstance(event, RunFinishedEvent):
                kinds.append("run-finished")
            elif isinstance(event, SuiteEvent):
                kinds.append(f"suite-{event.state}:{event.suite_id}")
            elif isinstance(event, TestEvent):
                kinds.append(f"test-{event.state}:{event.test_id}")
        return kinds


