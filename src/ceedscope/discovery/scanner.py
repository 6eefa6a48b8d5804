"""Regex scanner for Unity test functions in C sources.

A test function is a ``void`` function whose name starts with one of the
configured prefixes, optionally preceded by parameterization macros::

    TEST_CASE(1, 2)
    TEST_RANGE([0, 10, 5])
    void test_Something(int a, int b)

Known limits: this is a line-oriented approximation, not a C parser. Macros
whose argument list spans several lines, comments between a macro and the
function, and definitions with further parentheses on the signature line
(``void test_x(void) { f(); }``) are not handled reliably. Ceedling's own
build remains the authority on what compiles.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ceedscope.core.errors import DiscoveryError

_FIRST_NON_SPACE = re.compile(r"\S")
_LINE_CONTINUATION = re.compile(r"\\\s*")


@dataclass(frozen=True)
class ScannedFunction:
    """A test function found in source text."""

    annotations: str  # Raw macro block preceding the signature
    name: str
    line: int  # 0-based line of the first non-blank character of the match


def macro_alternation(macros: Iterable[str]) -> str:
    """Regex alternation of macro names; never matches when there are none."""
    names = [re.escape(m) for m in macros if m]
    return "|".join(names) if names else "(?!)"


def build_function_regex(
    test_prefix: str,
    case_macros: Iterable[str],
    range_macros: Iterable[str],
) -> re.Pattern[str]:
    aliases = macro_alternation([*case_macros, *range_macros])
    return re.compile(
        rf"^((?:\s*(?:{aliases})\s*\(.*?\)\s*)*)"
        rf"\s*void\s+((?:{test_prefix})(?:.*\\\s+)*.*)"
        r"\s*\(\s*(.*)\s*\)",
        re.MULTILINE,
    )


def join_continued_name(name: str) -> str:
    """Join a function name wrapped with backslash-newline continuations."""
    return _LINE_CONTINUATION.sub("", name).strip()


class SourceScanner:
    """Finds test functions in C source text."""

    def __init__(
        self,
        test_prefix: str,
        case_macros: Iterable[str],
        range_macros: Iterable[str],
    ) -> None:
        self._regex = build_function_regex(test_prefix, case_macros, range_macros)

    @property
    def regex(self) -> re.Pattern[str]:
        return self._regex

    def scan(self, text: str) -> list[ScannedFunction]:
        """Return every test function in ``text``, in file order."""
        found: list[ScannedFunction] = []
        for match in self._regex.finditer(text):
            line = text.count("\n", 0, match.start())
            whole = match.group(0)
            first = _FIRST_NON_SPACE.search(whole)
            leading = whole[: first.start()] if first else whole
            line += leading.count("\n")
            found.append(
                ScannedFunction(
                    annotations=match.group(1),
                    name=join_continued_name(match.group(2)),
                    line=line,
                )
            )
        return found

    def scan_file(self, path: Path) -> list[ScannedFunction]:
        """Scan a file on disk.

        Raises:
            DiscoveryError: If the file cannot be read.
        """
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise DiscoveryError.file_unreadable(str(path), str(e)) from e
        return self.scan(text)
