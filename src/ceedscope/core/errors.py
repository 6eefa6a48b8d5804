"""Ceedscope error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Discovery
- 7xxx: Tool
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004
    CONFIG_PROJECT_PATH_INVALID = 2005
    CONFIG_PLUGIN_MISSING = 2006

    # Discovery (3xxx)
    DISCOVERY_INVALID_RANGE = 3001
    DISCOVERY_FILE_UNREADABLE = 3002

    # Tool (7xxx)
    TOOL_UNAVAILABLE = 7001
    TOOL_VERSION_UNKNOWN = 7002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CeedscopeError(Exception):
    """Base error with structured context for host-facing messages."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CeedscopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=(
                f"Failed to find or load the project configuration {path}. "
                "Please check the projects option."
            ),
            details={"path": path},
        )

    @classmethod
    def project_path_invalid(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PROJECT_PATH_INVALID,
            message=f"The project path {path} does not exist or is not a directory.",
            details={"path": path},
        )

    @classmethod
    def plugin_missing(cls, plugin: str, path: str, reason: str = "") -> "ConfigError":
        message = (
            f"The required Ceedling plugin '{plugin}' is not enabled. "
            f"You have to edit {path} file to enable the plugin."
        )
        if reason:
            message = f"{message} {reason}"
        return cls(
            code=ErrorCode.CONFIG_PLUGIN_MISSING,
            message=message,
            details={"plugin": plugin, "path": path},
        )


class DiscoveryError(CeedscopeError):
    """Errors raised while scanning sources for tests."""

    @classmethod
    def invalid_range(cls, triple: str, reason: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.DISCOVERY_INVALID_RANGE,
            message=f"Invalid range annotation {triple}: {reason}",
            details={"range": triple, "reason": reason},
        )

    @classmethod
    def file_unreadable(cls, path: str, reason: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.DISCOVERY_FILE_UNREADABLE,
            message=f"Failed to read test file {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ToolError(CeedscopeError):
    """Errors from the external build tool as a whole (not from single tests)."""

    @classmethod
    def unavailable(cls, output: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_UNAVAILABLE,
            message=(
                "Ceedling failed to run in the configured shell. "
                "Please check if you can run `ceedling summary` in your shell.\n"
                "Please check the shell_path option.\n"
                f"{output}"
            ),
            details={"output": output},
        )

    @classmethod
    def version_unknown(cls, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_VERSION_UNKNOWN,
            message=f"Ceedling version check failed: {reason}",
            details={"reason": reason},
        )


class InternalError(CeedscopeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
