"""Config module exports."""

from ceedscope.config.loader import deep_merge, load_config
from ceedscope.config.models import (
    ExplorerConfig,
    LoggingConfig,
    ProblemMatchingConfig,
    ProblemMatchingPattern,
    ProjectConfig,
)

__all__ = [
    "deep_merge",
    "load_config",
    "ExplorerConfig",
    "LoggingConfig",
    "ProblemMatchingConfig",
    "ProblemMatchingPattern",
    "ProjectConfig",
]
