"""Argument construction and output parsing for Ceedling sub-commands."""

from __future__ import annotations

import re
from collections.abc import Sequence

from packaging.version import InvalidVersion, Version

from ceedscope.config.constants import (
    DEFAULT_PROJECT_FILE,
    FILE_LIST_ITEM_PREFIX,
    FILE_TYPES_LEGACY,
    FILE_TYPES_MODERN,
    MODERN_VERSION,
    TEST_ID_PLACEHOLDER,
)
from ceedscope.projects.models import FileType, Project

_VERSION_LINE_RE = re.compile(r"^\s*Ceedling\s*(?:::|=>)\s*(.*)(?:\n)*$", re.MULTILINE)
_VERSION_NUMBER_RE = re.compile(r"\d+(?:\.\d+)*")
_DIRECTORY_RE = re.compile(r"^.*[\\/]")

UNKNOWN_VERSION = "0.0.0"


def suite_command_args(templates: Sequence[str], suite_id: str) -> list[str]:
    """Fill ``${TEST_ID}`` with the file name of the suite ('test/test_a.c' -> 'test_a.c')."""
    file_name = _DIRECTORY_RE.sub("", suite_id)
    return [t.replace(TEST_ID_PLACEHOLDER, file_name) for t in templates]


def project_args(project: Project, *, modern: bool) -> list[str]:
    """Arguments that select the project's configuration file."""
    if modern:
        args = ["--project", DEFAULT_PROJECT_FILE]
        if project.uses_mixin:
            args += ["--mixin", project.yml_file_name]
        return args
    return [f"project:{project.yml_stem}"]


def file_list_args(file_type: FileType) -> list[str]:
    return [f"files:{file_type}"]


def file_types(*, modern: bool) -> tuple[FileType, ...]:
    return FILE_TYPES_MODERN if modern else FILE_TYPES_LEGACY


def parse_file_list(stdout: str) -> list[str]:
    """Extract the ``' - <path>'`` items of a ``files:<type>`` listing."""
    return [
        line[len(FILE_LIST_ITEM_PREFIX) :].strip()
        for line in stdout.split("\n")
        if line.startswith(FILE_LIST_ITEM_PREFIX)
    ]


def parse_version(stdout: str) -> str | None:
    """Version string from ``ceedling version`` output, None if absent."""
    match = _VERSION_LINE_RE.search(stdout)
    if match is None:
        return None
    return match.group(1).strip()


def is_modern_version(version: str | None) -> bool:
    """Whether ``version`` is at least the release that introduced --project/--mixin.

    Anything unparsable counts as legacy.
    """
    match = _VERSION_NUMBER_RE.match(version or UNKNOWN_VERSION)
    if match is None:
        return False
    try:
        return Version(match.group(0)) >= Version(MODERN_VERSION)
    except InvalidVersion:
        return False
