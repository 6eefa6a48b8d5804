"""Tests for debugging a test file through the host launcher."""

from __future__ import annotations

from pathlib import Path

import pytest

from ceedscope.adapter import DEBUGGER_START_FAILED, CeedlingAdapter, debug_executable_path
from ceedscope.config.constants import DEFAULT_EXECUTABLE_EXTENSION
from ceedscope.config.models import ExplorerConfig, ProjectConfig
from ceedscope.core.errors import InternalError
from ceedscope.execution.invoker import ToolResult
from ceedscope.projects.models import ProjectSettings
from tests.adapter.fakes import FakeCeedling, FakeLauncher, Recorder, report_xml

EXT = DEFAULT_EXECUTABLE_EXTENSION


class TestDebugExecutablePath:
    def test_modern_uses_test_directory(self) -> None:
        path = debug_executable_path("test/test_foo.c", ProjectSettings(), modern=True)
        assert path == f"test_foo/test_foo{EXT}"

    def test_legacy_flat(self) -> None:
        path = debug_executable_path("test/test_foo.c", ProjectSettings(), modern=False)
        assert path == f"test_foo{EXT}"

    def test_legacy_with_test_defines(self) -> None:
        settings = ProjectSettings(test_defines=frozenset({"test_foo"}))
        path = debug_executable_path("test/test_foo.c", settings, modern=False)
        assert path == f"test_foo/test_foo{EXT}"

    def test_custom_extension(self) -> None:
        settings = ProjectSettings(executable_extension=".elf")
        assert debug_executable_path("test_foo.c", settings, modern=False) == "test_foo.elf"

    def test_not_a_c_file(self) -> None:
        with pytest.raises(InternalError):
            debug_executable_path("fw", ProjectSettings(), modern=True)


class TestDebug:
    """Build, launch and wait for a debug session."""

    @pytest.mark.asyncio
    async def test_successful_session(
        self,
        adapter: CeedlingAdapter,
        ceedling: FakeCeedling,
        launcher: FakeLauncher,
        recorder: Recorder,
    ) -> None:
        ceedling.reports["test_foo.c"] = report_xml(passed=["test_foo.c::test_X"])
        executables: list[str] = []
        launcher.on_start = lambda: executables.append(adapter.debug_test_executable)
        await adapter.load()

        await adapter.debug(["test_foo.c::test_X"])

        assert ceedling.commands()[-1] == "test:test_foo.c"
        assert launcher.started == ["ceedling"]
        assert launcher.waited == ["ceedling"]
        assert executables == [f"test_foo/test_foo{EXT}"]
        assert adapter.debug_test_executable == ""
        assert recorder.kinds() == [
            "run-started",
            "suite-running:test_foo.c",
            "test-running:test_foo.c",
            "suite-completed:test_foo.c",
            "test-passed:test_foo.c",
            "run-finished",
        ]

    @pytest.mark.asyncio
    async def test_compile_failure(
        self,
        adapter: CeedlingAdapter,
        ceedling: FakeCeedling,
        launcher: FakeLauncher,
        recorder: Recorder,
    ) -> None:
        await adapter.load()
        ceedling.overrides["test:test_foo.c"] = ToolResult(
            returncode=1, stdout="ERROR: Ceedling Failed", stderr="undefined reference"
        )

        await adapter.debug(["test_foo.c"])

        assert launcher.started == []
        failed = recorder.test_events("failed")
        assert [e.test_id for e in failed] == ["test_foo.c"]
        assert failed[0].message == "ERROR: Ceedling Failed\nundefined reference"
        assert recorder.kinds()[-1] == "run-finished"

    @pytest.mark.asyncio
    async def test_test_failure_still_debugs(
        self, adapter: CeedlingAdapter, launcher: FakeLauncher
    ) -> None:
        await adapter.load()

        # No report: the test executable ran and failed, but it was built
        await adapter.debug(["test_foo.c"])

        assert launcher.started == ["ceedling"]

    @pytest.mark.asyncio
    async def test_launcher_refuses(
        self, workspace: Path, ceedling: FakeCeedling
    ) -> None:
        launcher = FakeLauncher(starts=False)
        adapter = CeedlingAdapter(workspace, invoker=ceedling, launcher=launcher)
        recorder = Recorder(adapter)
        await adapter.load()

        await adapter.debug(["test_foo.c"])

        failed = recorder.test_events("failed")
        assert [(e.test_id, e.message) for e in failed] == [("test_foo.c", DEBUGGER_START_FAILED)]
        assert launcher.waited == []
        assert recorder.kinds()[-1] == "run-finished"

    @pytest.mark.asyncio
    async def test_no_launcher(self, workspace: Path, ceedling: FakeCeedling) -> None:
        adapter = CeedlingAdapter(workspace, invoker=ceedling)
        recorder = Recorder(adapter)
        await adapter.load()

        await adapter.debug(["test_foo.c"])

        assert recorder.test_events("failed")[0].message == DEBUGGER_START_FAILED

    @pytest.mark.asyncio
    async def test_unknown_target(
        self, adapter: CeedlingAdapter, ceedling: FakeCeedling, recorder: Recorder
    ) -> None:
        await adapter.load()
        calls = len(ceedling.calls)

        await adapter.debug(["missing.c::test_A"])

        assert recorder.states == []
        assert len(ceedling.calls) == calls

    @pytest.mark.asyncio
    async def test_only_first_suite_debugged(
        self, adapter: CeedlingAdapter, ceedling: FakeCeedling, launcher: FakeLauncher
    ) -> None:
        await adapter.load()

        await adapter.debug(["test_param.c::test_Param(1)", "test_foo.c"])

        test_commands = [c for c in ceedling.commands() if c.startswith("test:")]
        assert test_commands == ["test:test_param.c"]
        assert launcher.started == ["ceedling"]

    @pytest.mark.asyncio
    async def test_project_launch_config(self, workspace: Path, ceedling: FakeCeedling) -> None:
        launcher = FakeLauncher()
        config = ExplorerConfig(projects=[ProjectConfig(path=".", debug_launch_config="gdb")])
        adapter = CeedlingAdapter(workspace, config, invoker=ceedling, launcher=launcher)
        await adapter.load()

        await adapter.debug(["test_foo.c"])

        assert launcher.started == ["gdb"]
        assert adapter.notify_debug_session_terminated("gdb") is True
