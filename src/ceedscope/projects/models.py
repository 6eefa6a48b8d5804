"""Project data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from ceedscope.config.constants import (
    DEFAULT_BUILD_ROOT,
    DEFAULT_EXECUTABLE_EXTENSION,
    DEFAULT_PROJECT_FILE,
    DEFAULT_TEST_FILE_PREFIX,
    DEFAULT_TEST_PREFIX,
    LEGACY_REPORT_FILENAME,
)

FileType = Literal["assembly", "header", "source", "test"]


@dataclass
class Project:
    """A resolved Ceedling project."""

    key: str
    path: str  # Directory as configured (relative to the workspace root)
    abs_path: Path
    yml_file_name: str
    debug_launch_config: str
    files: dict[FileType, list[str]] = field(default_factory=dict)

    @property
    def yml_path(self) -> Path:
        return self.abs_path / self.yml_file_name

    @property
    def default_yml_path(self) -> Path:
        return self.abs_path / DEFAULT_PROJECT_FILE

    @property
    def uses_mixin(self) -> bool:
        """Whether the project file is layered over the shared project.yml."""
        return self.yml_file_name != DEFAULT_PROJECT_FILE

    @property
    def yml_stem(self) -> str:
        return self.yml_file_name.rsplit(".", 1)[0]


@dataclass(frozen=True)
class ProjectSettings:
    """Values the engine reads from a project's Ceedling configuration."""

    build_root: str = DEFAULT_BUILD_ROOT
    report_filename: str = LEGACY_REPORT_FILENAME
    test_prefix: str = DEFAULT_TEST_PREFIX
    test_file_prefix: str = DEFAULT_TEST_FILE_PREFIX
    executable_extension: str = DEFAULT_EXECUTABLE_EXTENSION
    test_defines: frozenset[str] = frozenset()

    def has_test_defines(self, test_name: str) -> bool:
        """Whether ``:defines`` holds a section for this test executable."""
        return test_name in self.test_defines
