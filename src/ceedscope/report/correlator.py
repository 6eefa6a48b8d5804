"""Reading the Ceedling XML test report and mapping it onto test states.

The report is the CppUnit-style document written by Ceedling's report
plugins::

    <TestRun>
      <FailedTests>
        <Test id="1">
          <Name>test/test_a.c::test_b</Name>
          <Location><File>test/test_a.c</File><Line>12</Line></Location>
          <Message>Expected 1 Was 2</Message>
        </Test>
      </FailedTests>
      <SuccessfulTests>...</SuccessfulTests>
      <IgnoredTests>...</IgnoredTests>
    </TestRun>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import structlog

from ceedscope.config.constants import REPORT_ARTIFACT_SUBDIRS
from ceedscope.events import Decoration, TestEvent
from ceedscope.projects.models import ProjectSettings
from ceedscope.tree.models import SuiteNode
from ceedscope.tree.ops import iter_tests

log = structlog.get_logger(__name__)

ReportStatus = Literal["skipped", "passed", "failed"]

# Section tag -> resulting state, in emission order
_SECTIONS: tuple[tuple[str, ReportStatus], ...] = (
    ("IgnoredTests", "skipped"),
    ("SuccessfulTests", "passed"),
    ("FailedTests", "failed"),
)


@dataclass(frozen=True)
class ReportEntry:
    name: str
    status: ReportStatus
    line: int | None = None  # 1-based, failures only
    message: str | None = None


@dataclass
class ReportData:
    entries: list[ReportEntry] = field(default_factory=list)

    def by_status(self, status: ReportStatus) -> list[ReportEntry]:
        return [e for e in self.entries if e.status == status]


# =============================================================================
# Artifact location
# =============================================================================


def report_candidates(project_root: Path, settings: ProjectSettings) -> list[Path]:
    artifacts = project_root / settings.build_root / "artifacts"
    return [artifacts / subdir / settings.report_filename for subdir in REPORT_ARTIFACT_SUBDIRS]


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0


def resolve_report_path(project_root: Path, settings: ProjectSettings) -> Path:
    """The most recently written report (``test`` wins on equal times).

    ``ceedling test:*`` writes into ``artifacts/test`` while ``gcov:*``
    writes into ``artifacts/gcov``.
    """
    candidates = report_candidates(project_root, settings)
    # max() keeps the first of equal elements
    return max(candidates, key=_mtime)


def delete_report(path: Path) -> None:
    """Remove a stale report so that a missing report means 'not produced'."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        log.error("report_delete_failed", path=str(path), error=str(e))


# =============================================================================
# Parsing
# =============================================================================


def _text(element: ET.Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    return element.text.strip()


def _failure_line(test: ET.Element) -> int | None:
    raw = _text(test.find("Location/Line"))
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def parse_report(content: str) -> ReportData:
    """Parse report XML.

    Raises:
        ET.ParseError: If the document is not well-formed.
        ValueError: If the root element is not ``TestRun``.
    """
    root = ET.fromstring(content)
    if root.tag != "TestRun":
        raise ValueError(f"Unexpected report root element <{root.tag}>")

    data = ReportData()
    for section_tag, status in _SECTIONS:
        section = root.find(section_tag)
        if section is None:
            continue
        for test in section.findall("Test"):
            name = _text(test.find("Name"))
            if not name:
                log.warning("report_entry_without_name", section=section_tag)
                continue
            if status == "failed":
                data.entries.append(
                    ReportEntry(
                        name=name,
                        status=status,
                        line=_failure_line(test),
                        message=_text(test.find("Message")) or "",
                    )
                )
            else:
                data.entries.append(ReportEntry(name=name, status=status))
    return data


def load_report(path: Path) -> ReportData | None:
    """Read and parse the report; None when it is missing or malformed."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        log.error("report_read_failed", path=str(path), error=str(e))
        return None
    try:
        data = parse_report(content)
    except (ET.ParseError, ValueError) as e:
        log.error("report_parse_failed", path=str(path), error=str(e))
        return None
    log.debug("report_loaded", path=str(path), entries=len(data.entries))
    return data


# =============================================================================
# Correlation
# =============================================================================


def format_output_message(stdout: str, stderr: str) -> str:
    """Combined tool output attached to every state of a suite."""
    message = f"stdout:\n{stdout}"
    if stderr:
        message += f"\nstderr:\n{stderr}"
    return message


def correlate(report: ReportData | None, suite: SuiteNode, message: str) -> list[TestEvent]:
    """Turn a report into test state events.

    Without a report every test under ``suite`` is ``errored``; with one,
    each entry yields a state keyed by the entry name, in the order
    skipped, passed, failed. Failure decorations use 0-based lines.
    """
    if report is None:
        return [
            TestEvent(test_id=test.id, state="errored", message=message)
            for test in iter_tests(suite)
        ]

    events: list[TestEvent] = []
    for entry in report.entries:
        decorations: list[Decoration] = []
        if entry.status == "failed" and entry.line is not None:
            decorations.append(Decoration(line=entry.line - 1, message=entry.message or ""))
        events.append(
            TestEvent(
                test_id=entry.name,
                state=entry.status,
                message=message,
                decorations=decorations,
            )
        )
    return events
