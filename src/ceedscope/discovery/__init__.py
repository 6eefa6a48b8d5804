"""Discovery of Unity test functions in C sources."""

from ceedscope.discovery.expander import ParamCase, ParameterExpander, format_number, range_values
from ceedscope.discovery.labels import LabelFormatter
from ceedscope.discovery.scanner import ScannedFunction, SourceScanner, build_function_regex

__all__ = [
    "LabelFormatter",
    "ParamCase",
    "ParameterExpander",
    "ScannedFunction",
    "SourceScanner",
    "build_function_regex",
    "format_number",
    "range_values",
]
