"""Builds the test tree from the projects' test file lists."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog

from ceedscope.config.constants import ROOT_SUITE_ID, ROOT_SUITE_LABEL
from ceedscope.core.errors import DiscoveryError
from ceedscope.discovery.expander import ParameterExpander
from ceedscope.discovery.labels import LabelFormatter
from ceedscope.discovery.scanner import SourceScanner
from ceedscope.projects.models import Project, ProjectSettings
from ceedscope.tree.models import SuiteNode, TestNode
from ceedscope.tree.ops import ID_SEPARATOR

log = structlog.get_logger(__name__)


def new_root() -> SuiteNode:
    return SuiteNode(id=ROOT_SUITE_ID, label=ROOT_SUITE_LABEL)


class TreeBuilder:
    """Scans every test file of every project into a fresh tree."""

    def __init__(
        self,
        *,
        case_macros: Iterable[str],
        range_macros: Iterable[str],
        pretty_test_label: bool = False,
        pretty_file_label: bool = False,
    ) -> None:
        self._case_macros = list(case_macros)
        self._range_macros = list(range_macros)
        self._pretty_test_label = pretty_test_label
        self._pretty_file_label = pretty_file_label
        self._expander = ParameterExpander(self._case_macros, self._range_macros)

    def build(
        self,
        projects: Mapping[str, Project],
        settings: Mapping[str, ProjectSettings],
    ) -> SuiteNode:
        """Build the tree.

        With a single project the file suites hang directly off the root;
        with several, each project gets its own suite keyed by project key.
        """
        root = new_root()
        if len(projects) == 1:
            project = next(iter(projects.values()))
            root.children.extend(self._file_suites(project, settings.get(project.key)))
            return root

        for project in projects.values():
            if "test" not in project.files:
                continue
            root.children.append(
                SuiteNode(
                    id=project.key,
                    label=project.key,
                    project_key=project.key,
                    is_project_root=True,
                    children=list(self._file_suites(project, settings.get(project.key))),
                )
            )
        return root

    def _file_suites(
        self, project: Project, settings: ProjectSettings | None
    ) -> list[SuiteNode]:
        settings = settings or ProjectSettings()
        scanner = SourceScanner(settings.test_prefix, self._case_macros, self._range_macros)
        labels = LabelFormatter(
            settings.test_prefix,
            settings.test_file_prefix,
            pretty_test_label=self._pretty_test_label,
            pretty_file_label=self._pretty_file_label,
        )
        return [
            self._file_suite(project, file, scanner, labels)
            for file in project.files.get("test", [])
        ]

    def _file_suite(
        self,
        project: Project,
        file: str,
        scanner: SourceScanner,
        labels: LabelFormatter,
    ) -> SuiteNode:
        full_path = str((project.abs_path / Path(file)).resolve())
        suite = SuiteNode(
            id=file,
            label=labels.file_label(file),
            file=full_path,
            project_key=project.key,
        )
        try:
            suite.children.extend(self._scan_children(project, file, full_path, scanner, labels))
        except DiscoveryError as e:
            log.error("test_file_scan_failed", file=file, error=e.message, code=e.error_name)
        return suite

    def _scan_children(
        self,
        project: Project,
        file: str,
        full_path: str,
        scanner: SourceScanner,
        labels: LabelFormatter,
    ) -> list[SuiteNode | TestNode]:
        children: list[SuiteNode | TestNode] = []
        for function in scanner.scan_file(Path(full_path)):
            function_id = f"{file}{ID_SEPARATOR}{function.name}"
            label = labels.test_label(function.name)
            try:
                cases = self._expander.expand(function.annotations)
            except DiscoveryError as e:
                log.error(
                    "test_function_expand_failed",
                    file=file,
                    function=function.name,
                    error=e.message,
                    code=e.error_name,
                )
                continue
            if not cases:
                children.append(
                    TestNode(
                        id=function_id,
                        label=label,
                        file=full_path,
                        line=function.line,
                        project_key=project.key,
                    )
                )
                continue

            param_suite = SuiteNode(
                id=function_id, label=label, file=full_path, project_key=project.key
            )
            for case in cases:
                param_suite.children.append(
                    TestNode(
                        id=f"{function_id}({case.args})",
                        label=case.args,
                        file=full_path,
                        line=function.line + case.ordinal,
                        project_key=project.key,
                    )
                )
            children.append(param_suite)
        return children
