"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CEEDSCOPE__SECTION__KEY)
3. Workspace YAML (.ceedscope/config.yaml)
4. Global YAML (~/.config/ceedscope/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CEEDSCOPE__<KEY>=<VALUE> or CEEDSCOPE__<SECTION>__<KEY>=<VALUE>

Examples:
    CEEDSCOPE__LOGGING__LEVEL=DEBUG
    CEEDSCOPE__SHELL_PATH=/bin/bash
    CEEDSCOPE__PROBLEM_MATCHING__ENABLED=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ceedscope.config.constants import (
    DEFAULT_DEBUG_LAUNCH_CONFIG,
    DEFAULT_TEST_CASE_MACROS,
    DEFAULT_TEST_COMMAND_ARGS,
    DEFAULT_TEST_RANGE_MACROS,
    DEFAULT_TOOL,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Severity = Literal["error", "warning", "info"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CEEDSCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every tool invocation and report.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ProjectConfig(BaseModel):
    """One configured Ceedling project.

    ``path`` is either the project directory or the path of a project yml
    file (relative to the workspace root, or absolute).
    """

    path: str
    debug_launch_config: str = Field(
        default=DEFAULT_DEBUG_LAUNCH_CONFIG,
        description="Name of the host debug configuration used to debug this project.",
    )
    name: str | None = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Project path must not be empty")
        return v


class ProblemMatchingPattern(BaseModel):
    """A regex that turns one line of tool output into a diagnostic.

    Group indexes refer to capture groups of ``regexp``.
    """

    regexp: str
    message: int
    file: int
    line: int | None = None
    last_line: int | None = None
    column: int | None = None
    last_column: int | None = None
    severity: Severity = "info"
    file_prefix: str = Field(
        default="",
        description="Prefix joined to relative file names. ${projectPath} expands "
        "to the project directory.",
    )
    scan_stdout: bool = False
    scan_stderr: bool = True


class ProblemMatchingConfig(BaseModel):
    """Problem matching configuration.

    Env vars:
        CEEDSCOPE__PROBLEM_MATCHING__ENABLED: Turn diagnostics extraction on
        CEEDSCOPE__PROBLEM_MATCHING__MODE: Preset pattern set (gcc, clang)
    """

    enabled: bool = False
    mode: str = Field(
        default="",
        description="Preset pattern set ('gcc' or 'clang'). Custom patterns are "
        "applied in addition to the preset.",
    )
    patterns: list[ProblemMatchingPattern] = Field(default_factory=list)


class ExplorerConfig(BaseModel):
    """Root configuration (plain model, used for type hints)."""

    logging: LoggingConfig = LoggingConfig()
    projects: list[ProjectConfig] = Field(default_factory=list)
    tool: str = DEFAULT_TOOL
    shell_path: str | None = None
    test_command_args: list[str] = Field(default_factory=lambda: list(DEFAULT_TEST_COMMAND_ARGS))
    test_case_macro_aliases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TEST_CASE_MACROS)
    )
    test_range_macro_aliases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TEST_RANGE_MACROS)
    )
    pretty_test_label: bool = False
    pretty_test_file_label: bool = False
    ansi_escape_sequences_removed: bool = True
    problem_matching: ProblemMatchingConfig = ProblemMatchingConfig()

    @field_validator("shell_path")
    @classmethod
    def validate_shell_path(cls, v: str | None) -> str | None:
        # The editor-side default for "no shell" is the literal string "null"
        if v is None or v.strip() in ("", "null"):
            return None
        return v
