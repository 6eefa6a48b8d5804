"""Core module exports."""

from ceedscope.core.errors import (
    CeedscopeError,
    ConfigError,
    DiscoveryError,
    ErrorCode,
    InternalError,
    ToolError,
)
from ceedscope.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "CeedscopeError",
    "ConfigError",
    "DiscoveryError",
    "ErrorCode",
    "InternalError",
    "ToolError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
