"""Compiler diagnostics extracted from build tool output."""

from ceedscope.problems.matcher import (
    PRESETS,
    Diagnostic,
    DiagnosticsChangedEvent,
    ProblemMatcher,
)

__all__ = ["PRESETS", "Diagnostic", "DiagnosticsChangedEvent", "ProblemMatcher"]
