"""Extraction of compiler diagnostics from build tool output.

Each pattern is a regex applied line by line to stdout and/or stderr;
capture group indexes select the file, message and optional range. Results
are kept per suite so that re-running one suite replaces only its own
diagnostics, and are published merged per file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ceedscope.config.models import ProblemMatchingConfig, ProblemMatchingPattern, Severity
from ceedscope.events import EventEmitter

log = structlog.get_logger(__name__)

PROJECT_PATH_PLACEHOLDER = "${projectPath}"
DIAGNOSTIC_SOURCE = "Ceedling"
_DEFAULT_END_COLUMN = 999

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def _compiler_patterns() -> list[ProblemMatchingPattern]:
    """``file:line:column: error: message`` as printed by gcc and clang."""
    return [
        ProblemMatchingPattern(
            regexp=rf"^(.*?):(\d+):(\d+):\s+(?:fatal\s+)?{kind}:\s+(.*)$",
            file=1,
            line=2,
            column=3,
            message=4,
            severity=severity,
            file_prefix=PROJECT_PATH_PLACEHOLDER,
            scan_stdout=True,
            scan_stderr=True,
        )
        for kind, severity in (("error", "error"), ("warning", "warning"))
    ]


PRESETS: dict[str, list[ProblemMatchingPattern]] = {
    "gcc": _compiler_patterns(),
    "clang": _compiler_patterns(),
}


@dataclass(frozen=True)
class Diagnostic:
    """A problem located in a source file. Lines and columns are 0-based."""

    file: str
    message: str
    severity: Severity
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    source: str = DIAGNOSTIC_SOURCE


@dataclass
class DiagnosticsChangedEvent:
    """Current diagnostics of every file; files absent from the map have none."""

    diagnostics: dict[str, list[Diagnostic]] = field(default_factory=dict)


@dataclass(frozen=True)
class _CompiledPattern:
    cfg: ProblemMatchingPattern
    regex: re.Pattern[str]


def _group(match: re.Match[str], index: int | None) -> str | None:
    if index is None:
        return None
    return match.group(index)


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    return int(value)


class ProblemMatcher:
    """Turns tool output into per-file diagnostics."""

    def __init__(self, config: ProblemMatchingConfig | None = None) -> None:
        self.changed: EventEmitter[DiagnosticsChangedEvent] = EventEmitter()
        self._suite_diagnostics: dict[str, list[Diagnostic]] = {}
        self._patterns: list[_CompiledPattern] = []
        self.enabled = False
        self.configure(config or ProblemMatchingConfig())

    def configure(self, config: ProblemMatchingConfig) -> None:
        """Apply new settings; disabling drops all current diagnostics."""
        self.enabled = config.enabled
        self._patterns = list(self._compile(config))
        if not self.enabled:
            self.clear()

    def _compile(self, config: ProblemMatchingConfig) -> Iterable[_CompiledPattern]:
        preset = PRESETS.get(config.mode, [])
        if config.mode and config.mode not in PRESETS:
            log.warning("problem_matching_unknown_mode", mode=config.mode)
        for cfg in [*preset, *config.patterns]:
            try:
                regex = re.compile(cfg.regexp)
            except re.error as e:
                log.warning("problem_matching_invalid_regexp", regexp=cfg.regexp, error=str(e))
                continue
            # file and message must both be capture groups
            if regex.groups < 2:
                log.warning("problem_matching_too_few_groups", regexp=cfg.regexp)
                continue
            yield _CompiledPattern(cfg=cfg, regex=regex)

    @property
    def patterns(self) -> list[ProblemMatchingPattern]:
        return [p.cfg for p in self._patterns]

    def scan(self, suite_id: str, stdout: str, stderr: str, project_path: str) -> list[Diagnostic]:
        """Replace the diagnostics recorded for ``suite_id`` with those found in the output."""
        found: list[Diagnostic] = []
        for pattern in self._patterns:
            found.extend(self._scan_pattern(pattern, stdout, stderr, project_path))
        self._suite_diagnostics[suite_id] = found
        log.debug("problem_matching_scanned", suite_id=suite_id, count=len(found))
        self._publish()
        return found

    def _scan_pattern(
        self, pattern: _CompiledPattern, stdout: str, stderr: str, project_path: str
    ) -> list[Diagnostic]:
        cfg = pattern.cfg
        text = (stdout if cfg.scan_stdout else "") + "\n" + (stderr if cfg.scan_stderr else "")
        prefix = cfg.file_prefix.replace(PROJECT_PATH_PLACEHOLDER, project_path)
        results: list[Diagnostic] = []
        for line in _LINE_SPLIT_RE.split(text):
            match = pattern.regex.search(line)
            if match is None:
                continue
            diagnostic = self._diagnostic_from_match(match, cfg, prefix)
            if diagnostic is not None:
                results.append(diagnostic)
        return results

    @staticmethod
    def _diagnostic_from_match(
        match: re.Match[str], cfg: ProblemMatchingPattern, prefix: str
    ) -> Diagnostic | None:
        indexes = (cfg.file, cfg.message, cfg.line, cfg.last_line, cfg.column, cfg.last_column)
        if any(i is not None and not 0 <= i <= match.re.groups for i in indexes):
            return None

        file = match.group(cfg.file)
        message = match.group(cfg.message)
        if file is None or message is None:
            return None
        try:
            line = _as_int(_group(match, cfg.line))
            last_line = _as_int(_group(match, cfg.last_line))
            column = _as_int(_group(match, cfg.column))
            last_column = _as_int(_group(match, cfg.last_column))
        except ValueError:
            return None

        if prefix:
            file = str((Path(prefix) / file).resolve())

        start_line = line - 1 if line is not None else 0
        return Diagnostic(
            file=file,
            message=message,
            severity=cfg.severity,
            start_line=start_line,
            start_column=column - 1 if column is not None else 0,
            end_line=last_line - 1 if last_line is not None else start_line,
            end_column=last_column - 1 if last_column is not None else _DEFAULT_END_COLUMN,
        )

    def diagnostics_by_file(self) -> dict[str, list[Diagnostic]]:
        """Merge all suites' diagnostics per file, dropping duplicates."""
        merged: dict[str, list[Diagnostic]] = {}
        for diagnostics in self._suite_diagnostics.values():
            for diagnostic in diagnostics:
                per_file = merged.setdefault(diagnostic.file, [])
                if diagnostic not in per_file:
                    per_file.append(diagnostic)
        return merged

    def set_actual_ids(self, ids: Iterable[str]) -> None:
        """Forget diagnostics of suites that no longer exist."""
        keep = set(ids)
        for suite_id in [k for k in self._suite_diagnostics if k not in keep]:
            del self._suite_diagnostics[suite_id]
        self._publish()

    def clear(self) -> None:
        self._suite_diagnostics.clear()
        self._publish()

    def _publish(self) -> None:
        self.changed.fire(DiagnosticsChangedEvent(diagnostics=self.diagnostics_by_file()))

    def dispose(self) -> None:
        self.clear()
        self.changed.clear()
