"""Ceedling test adapter: discovery, execution and result correlation.

``CeedlingAdapter`` is the entry point a host (editor integration, CLI)
drives. It owns the test tree, serializes every Ceedling invocation and
reports progress exclusively through its event emitters:

- ``tests``: load lifecycle (``LoadStartedEvent`` / ``LoadFinishedEvent``)
- ``test_states``: run lifecycle and per-suite/per-test state transitions
- ``watches``: files the host must watch, and what a change should trigger
- ``diagnostics``: compiler problems extracted from tool output
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from ceedscope.config.constants import COMPILE_FAILED_MARKER
from ceedscope.config.models import ExplorerConfig
from ceedscope.core.errors import CeedscopeError, ConfigError, InternalError, ToolError
from ceedscope.core.logging import clear_request_id, set_request_id
from ceedscope.events import (
    EventEmitter,
    LoadFinishedEvent,
    LoadStartedEvent,
    RunFinishedEvent,
    RunStartedEvent,
    SuiteEvent,
    TestEvent,
    WatchEffect,
    WatchRequest,
)
from ceedscope.execution.commands import (
    UNKNOWN_VERSION,
    file_list_args,
    file_types,
    is_modern_version,
    parse_file_list,
    parse_version,
    project_args,
    suite_command_args,
)
from ceedscope.execution.invoker import BuildToolInvoker, ToolResult
from ceedscope.execution.serializer import ExecutionSerializer
from ceedscope.problems.matcher import DiagnosticsChangedEvent, ProblemMatcher
from ceedscope.projects.models import FileType, Project, ProjectSettings
from ceedscope.projects.registry import resolve_projects
from ceedscope.projects.ymldata import check_project_data, load_project_data, settings_from_data
from ceedscope.report.correlator import (
    correlate,
    delete_report,
    format_output_message,
    load_report,
    report_candidates,
    resolve_report_path,
)
from ceedscope.tree.builder import TreeBuilder, new_root
from ceedscope.tree.models import SuiteNode
from ceedscope.tree.ops import iter_dfs, iter_tests, resolve_run_targets, strip_to_file_id

log = structlog.get_logger(__name__)

LoadEvent = LoadStartedEvent | LoadFinishedEvent
RunEvent = RunStartedEvent | RunFinishedEvent | SuiteEvent | TestEvent

DEBUGGER_START_FAILED = "Debugger could not be started"

_TEST_FILE_NAME_RE = re.compile(r"([^/]*)\.c$")


class DebugLauncher(Protocol):
    """Host-side debugger integration, addressed by launch configuration name."""

    async def start(self, config_name: str) -> bool:
        """Start a debug session; False if it could not be started."""
        ...

    async def wait_terminated(self, config_name: str) -> None:
        """Return once the session started for ``config_name`` has ended."""
        ...


def debug_executable_path(suite_id: str, settings: ProjectSettings, *, modern: bool) -> str:
    """Path of a test executable relative to the build's test output directory.

    Modern Ceedling, and legacy Ceedling with test-specific defines, build
    each test in its own ``<name>/`` directory.

    Raises:
        InternalError: If ``suite_id`` does not name a C test file.
    """
    match = _TEST_FILE_NAME_RE.search(suite_id)
    if match is None:
        raise InternalError.unexpected(
            f"Cannot debug '{suite_id}': not a test file", suite_id=suite_id
        )
    name = match.group(1)
    executable = f"{name}{settings.executable_extension}"
    if modern or settings.has_test_defines(name):
        return f"{name}/{executable}"
    return executable


@dataclass
class _Discovery:
    """Result of one discovery pass, swapped into the adapter as a whole."""

    root: SuiteNode
    projects: dict[str, Project]
    settings: dict[str, ProjectSettings]
    modern: bool
    error_message: str | None


class CeedlingAdapter:
    """Discovers and runs the Ceedling tests of one workspace."""

    def __init__(
        self,
        workspace_root: Path,
        config: ExplorerConfig | None = None,
        *,
        invoker: BuildToolInvoker | None = None,
        launcher: DebugLauncher | None = None,
    ) -> None:
        self.workspace_root = workspace_root
        self.config = config or ExplorerConfig()
        self.invoker = invoker or BuildToolInvoker(
            self.config.tool,
            shell_path=self.config.shell_path,
            ansi_escape_sequences_removed=self.config.ansi_escape_sequences_removed,
        )
        self.launcher = launcher
        self.serializer = ExecutionSerializer()
        self.problem_matcher = ProblemMatcher(self.config.problem_matching)

        self.tests: EventEmitter[LoadEvent] = EventEmitter()
        self.test_states: EventEmitter[RunEvent] = EventEmitter()
        self.watches: EventEmitter[WatchRequest] = EventEmitter()

        self.projects: dict[str, Project] = {}
        self.settings: dict[str, ProjectSettings] = {}
        self.root: SuiteNode = new_root()

        # None until `ceedling version` has been run for the current load
        self._modern: bool | None = None
        self._cancelled = False
        self._debug_test_executable = ""
        self._watched: dict[WatchEffect, set[str]] = {"reload": set(), "autorun": set()}

    @property
    def diagnostics(self) -> EventEmitter[DiagnosticsChangedEvent]:
        return self.problem_matcher.changed

    @property
    def modern(self) -> bool | None:
        """Whether the detected Ceedling supports --project/--mixin (None before load)."""
        return self._modern

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def debug_test_executable(self) -> str:
        """Executable of the test being debugged, read by the host's launch configuration."""
        return self._debug_test_executable

    @debug_test_executable.setter
    def debug_test_executable(self, path: str) -> None:
        self._debug_test_executable = path
        log.info("debug_test_executable_set", path=path)

    # =========================================================================
    # Configuration
    # =========================================================================

    async def reconfigure(self, config: ExplorerConfig) -> None:
        """Apply new settings, reloading when they change what discovery produces."""
        needs_reload = (
            config.projects != self.config.projects
            or config.pretty_test_label != self.config.pretty_test_label
            or config.pretty_test_file_label != self.config.pretty_test_file_label
            or config.test_case_macro_aliases != self.config.test_case_macro_aliases
            or config.test_range_macro_aliases != self.config.test_range_macro_aliases
        )
        self.config = config
        self.invoker.tool = config.tool
        self.invoker.shell_path = config.shell_path
        self.invoker.ansi_escape_sequences_removed = config.ansi_escape_sequences_removed
        self.problem_matcher.configure(config.problem_matching)
        if needs_reload:
            await self.load()

    # =========================================================================
    # Discovery
    # =========================================================================

    async def load(self) -> None:
        """Rediscover every project and replace the test tree."""
        log.info("load_started", workspace=str(self.workspace_root))
        self.tests.fire(LoadStartedEvent())
        try:
            found = await self._discover()
        except CeedscopeError as e:
            log.error("load_failed", code=e.error_name, error=e.message)
            self.tests.fire(LoadFinishedEvent(error_message=e.message))
            return

        self.projects = found.projects
        self.settings = found.settings
        self._modern = found.modern
        self.root = found.root
        root = found.root
        self.problem_matcher.set_actual_ids(n.id for n in iter_dfs(root) if n.type == "suite")
        log.info("load_finished", tests=sum(1 for _ in iter_tests(root)), error=found.error_message)
        self.tests.fire(LoadFinishedEvent(suite=root, error_message=found.error_message))

    async def _discover(self) -> _Discovery:
        """Run a full discovery pass without touching the adapter's current state."""
        projects = resolve_projects(self.config.projects, self.workspace_root)
        modern = await self._check_version()

        data = {key: load_project_data(project) for key, project in projects.items()}
        settings = {
            key: settings_from_data(project_data, modern=modern)
            for key, project_data in data.items()
        }

        await self._check_tool(projects, modern)
        errors: list[ConfigError] = []
        healthy: list[Project] = []
        for key, project in projects.items():
            error = check_project_data(project, data[key], modern=modern)
            if error is None:
                healthy.append(project)
            else:
                log.error("project_config_invalid", project=key, error=error.message)
                errors.append(error)

        self._declare_watch([str(p.yml_path) for p in projects.values()], "reload")

        for file_type in file_types(modern=modern):
            for project in healthy:
                files = await self._file_list(project, file_type, modern)
                project.files[file_type] = files
                self._declare_watch([str(project.abs_path / f) for f in files], "autorun")

        builder = TreeBuilder(
            case_macros=self.config.test_case_macro_aliases,
            range_macros=self.config.test_range_macro_aliases,
            pretty_test_label=self.config.pretty_test_label,
            pretty_file_label=self.config.pretty_test_file_label,
        )
        return _Discovery(
            root=builder.build(projects, settings),
            projects=projects,
            settings=settings,
            modern=modern,
            error_message="\n".join(e.message for e in errors) or None,
        )

    async def _check_version(self) -> bool:
        """Return whether the installed Ceedling is a modern release."""
        async with self.serializer.hold("version"):
            result = await self.invoker.execute(["version"], self.workspace_root)
        if result.spawn_error is not None:
            raise ToolError.version_unknown(result.spawn_error)
        version = parse_version(result.stdout)
        if version is None:
            log.error("ceedling_version_unknown", stdout=result.stdout, stderr=result.stderr)
        modern = is_modern_version(version)
        log.info("ceedling_version", version=version or UNKNOWN_VERSION, modern=modern)
        return modern

    async def _check_tool(self, projects: dict[str, Project], modern: bool) -> None:
        """Fail the load when Ceedling cannot run at all in the configured shell."""
        first = next(iter(projects.values()))
        async with self.serializer.hold("summary"):
            result = await self._execute(["summary"], first, modern=modern)
        if result.error:
            raise ToolError.unavailable(f"{result.stdout}\n{result.stderr}")

    async def _file_list(self, project: Project, file_type: FileType, modern: bool) -> list[str]:
        async with self.serializer.hold(f"files:{file_type}"):
            result = await self._execute(file_list_args(file_type), project, modern=modern)
        if result.error:
            log.error(
                "file_list_failed",
                project=project.key,
                file_type=file_type,
                stdout=result.stdout,
                stderr=result.stderr,
            )
            return []
        files = parse_file_list(result.stdout)
        log.debug("file_list_loaded", project=project.key, file_type=file_type, count=len(files))
        return files

    def _declare_watch(self, paths: Sequence[str], effect: WatchEffect) -> None:
        watched = self._watched[effect]
        new = [p for p in dict.fromkeys(paths) if p not in watched]
        if not new:
            return
        watched.update(new)
        self.watches.fire(WatchRequest(paths=new, effect=effect))

    # =========================================================================
    # Execution
    # =========================================================================

    async def _execute(
        self, args: Sequence[str], project: Project | None, *, modern: bool | None = None
    ) -> ToolResult:
        """Invoke Ceedling for ``project``; the caller must hold the serializer.

        ``modern`` overrides the version detected by the last completed load.
        """
        if modern is None:
            modern = self._modern
        cwd: Path = self.workspace_root
        if modern is not None and project is not None:
            args = [*args, *project_args(project, modern=modern)]
            cwd = project.abs_path
        return await self.invoker.execute(args, cwd)

    async def run(self, ids: Sequence[str]) -> None:
        """Run the suites containing ``ids``, one after another.

        Ceedling always builds and runs whole test files, so every id is
        widened to its file suite.
        """
        set_request_id()
        try:
            suites = resolve_run_targets(self.root, [strip_to_file_id(i) for i in ids])
            log.info("run_started", suites=[s.id for s in suites])
            self.test_states.fire(RunStartedEvent(tests=[s.id for s in suites]))
            self._cancelled = False
            for suite in suites:
                await self._run_suite(suite)
                if self._cancelled:
                    log.info("run_cancelled", suite_id=suite.id)
                    break
            self.test_states.fire(RunFinishedEvent())
        except CeedscopeError as e:
            log.error("run_failed", code=e.error_name, error=e.message)
        finally:
            clear_request_id()

    async def _run_suite(self, suite: SuiteNode) -> None:
        project = self.projects.get(suite.project_key or "")
        if project is None:
            log.error("suite_without_project", suite_id=suite.id)
            return
        settings = self.settings.get(project.key) or ProjectSettings()

        self.test_states.fire(SuiteEvent(suite_id=suite.id, state="running"))
        async with self.serializer.hold(f"run:{suite.id}"):
            for test in iter_tests(suite):
                self.test_states.fire(TestEvent(test_id=test.id, state="running"))

            for stale in report_candidates(project.abs_path, settings):
                delete_report(stale)

            target = "all" if suite.is_project_root else suite.id
            result = await self._execute(
                suite_command_args(self.config.test_command_args, target), project
            )
            message = format_output_message(result.stdout, result.stderr)

            if self.problem_matcher.enabled:
                self.problem_matcher.scan(
                    suite.id, result.stdout, result.stderr, str(project.abs_path)
                )

            report = load_report(resolve_report_path(project.abs_path, settings))
            for event in correlate(report, suite, message):
                self.test_states.fire(event)
        self.test_states.fire(SuiteEvent(suite_id=suite.id, state="completed"))

    async def debug(self, ids: Sequence[str]) -> None:
        """Build the first requested test file and debug it through the launcher."""
        set_request_id()
        file_ids = [strip_to_file_id(i) for i in ids]
        target_id = file_ids[0] if file_ids else ""
        try:
            suites = resolve_run_targets(self.root, file_ids)
            if not suites:
                log.error("debug_no_target", ids=list(ids))
                return
            suite = suites[0]
            target_id = suite.id
            project = self.projects.get(suite.project_key or "")
            if project is None:
                log.error("suite_without_project", suite_id=suite.id)
                return

            self.test_states.fire(RunStartedEvent(tests=[s.id for s in suites]))
            async with self.serializer.hold(f"debug:{suite.id}"):
                result = await self._execute(
                    suite_command_args(self.config.test_command_args, suite.id), project
                )
            if result.error and COMPILE_FAILED_MARKER in result.stdout:
                log.error("debug_compile_failed", suite_id=suite.id)
                self.test_states.fire(
                    TestEvent(
                        test_id=suite.id,
                        state="failed",
                        message=f"{result.stdout}\n{result.stderr}",
                    )
                )
                self.test_states.fire(RunFinishedEvent())
                return

            settings = self.settings.get(project.key) or ProjectSettings()
            self.debug_test_executable = debug_executable_path(
                suite.id, settings, modern=bool(self._modern)
            )

            self.test_states.fire(SuiteEvent(suite_id=suite.id, state="running"))
            self.test_states.fire(TestEvent(test_id=suite.id, state="running"))

            config_name = project.debug_launch_config
            launcher = self.launcher
            if launcher is None or not await launcher.start(config_name):
                log.error("debugger_start_failed", launch_config=config_name)
                self.test_states.fire(
                    TestEvent(test_id=suite.id, state="failed", message=DEBUGGER_START_FAILED)
                )
                self.test_states.fire(RunFinishedEvent())
                return

            await launcher.wait_terminated(config_name)
            self.test_states.fire(SuiteEvent(suite_id=suite.id, state="completed"))
            self.test_states.fire(TestEvent(test_id=suite.id, state="passed"))
            self.test_states.fire(RunFinishedEvent())
        except CeedscopeError as e:
            log.error("debug_failed", code=e.error_name, error=e.message)
            self.test_states.fire(TestEvent(test_id=target_id, state="failed", message=str(e)))
            self.test_states.fire(RunFinishedEvent())
        finally:
            self.debug_test_executable = ""
            self._cancelled = False
            clear_request_id()

    def cancel(self) -> None:
        """Stop the current run at the next suite boundary and kill the running process."""
        log.info("cancel_requested")
        self._cancelled = True
        self.invoker.cancel()
        self.test_states.fire(RunFinishedEvent())

    async def clean(self) -> list[ToolResult]:
        return await self._run_all_projects("clean")

    async def clobber(self) -> list[ToolResult]:
        return await self._run_all_projects("clobber")

    async def _run_all_projects(self, subcommand: str) -> list[ToolResult]:
        """Run ``ceedling <subcommand>`` in every project, one at a time.

        Raises:
            ConfigError: If the configured projects cannot be resolved.
            ToolError: If Ceedling cannot be spawned.
        """
        if not self.projects:
            self.projects = resolve_projects(self.config.projects, self.workspace_root)
        if self._modern is None:
            self._modern = await self._check_version()
        results: list[ToolResult] = []
        for project in self.projects.values():
            async with self.serializer.hold(f"{subcommand}:{project.key}"):
                results.append(await self._execute([subcommand], project))
        failed = [key for key, r in zip(self.projects, results, strict=True) if r.error]
        if failed:
            log.error("ceedling_cleanup_failed", subcommand=subcommand, projects=failed)
        return results

    def notify_debug_session_terminated(self, name: str) -> bool:
        """Host hook: a debug session ended. Returns True if it belonged to a project."""
        for project in self.projects.values():
            if name == project.debug_launch_config:
                self.cancel()
                self.test_states.fire(RunFinishedEvent())
                return True
        return False

    def dispose(self) -> None:
        self.cancel()
        self.problem_matcher.dispose()
        self.tests.clear()
        self.test_states.clear()
        self.watches.clear()
        for watched in self._watched.values():
            watched.clear()
