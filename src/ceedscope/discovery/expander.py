"""Expansion of TEST_CASE / TEST_RANGE annotations into concrete test cases."""

from __future__ import annotations

import itertools
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass

from ceedscope.core.errors import DiscoveryError
from ceedscope.discovery.scanner import macro_alternation

_NUMBER = r"(-?\d+(?:\.\d*)?)"
_RANGE_TRIPLE = re.compile(rf"\[\s*{_NUMBER}\s*,\s*{_NUMBER}\s*,\s*{_NUMBER}\s*\]")

# Tolerance when checking that a float range has a whole number of steps
_STEP_EPSILON = 1e-9


@dataclass(frozen=True)
class ParamCase:
    """One concrete argument list of a parameterized test.

    ``ordinal`` is the position of the producing macro in the annotation
    block; each macro sits on its own line, so it is also the line offset
    from the start of the block.
    """

    args: str
    ordinal: int


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return format(value, ".15g")


def range_values(start: float, end: float, increment: float) -> list[float]:
    """Inclusive arithmetic sequence ``start, start+increment, ..., end``.

    Raises:
        DiscoveryError: If the increment is zero or ``end`` is not reachable
            from ``start`` in a whole number of steps (at least one value).
    """
    triple = f"[{format_number(start)}, {format_number(end)}, {format_number(increment)}]"
    if increment == 0:
        raise DiscoveryError.invalid_range(triple, "increment must not be zero")
    steps = (end - start) / increment
    count = round(steps) + 1
    if not math.isfinite(steps) or abs(steps + 1 - count) > _STEP_EPSILON or count < 1:
        raise DiscoveryError.invalid_range(
            triple, "end is not reachable from start in whole increments"
        )
    return [start + j * increment for j in range(count)]


class ParameterExpander:
    """Turns the macro block captured by the scanner into parameter cases."""

    def __init__(self, case_macros: Iterable[str], range_macros: Iterable[str]) -> None:
        self._case_macros = frozenset(case_macros)
        aliases = macro_alternation([*self._case_macros, *range_macros])
        self._macro_regex = re.compile(rf"^\s*({aliases})\s*\((.*)\)\s*$", re.MULTILINE)

    def expand(self, annotations: str) -> list[ParamCase]:
        """Expand every macro in ``annotations``; empty when there are none.

        Raises:
            DiscoveryError: On a malformed range macro.
        """
        cases: list[ParamCase] = []
        for ordinal, match in enumerate(self._macro_regex.finditer(annotations)):
            macro, args = match.group(1), match.group(2)
            if macro in self._case_macros:
                cases.append(ParamCase(args=args, ordinal=ordinal))
            else:
                cases.extend(
                    ParamCase(args=combo, ordinal=ordinal) for combo in self._expand_ranges(args)
                )
        return cases

    def _expand_ranges(self, args: str) -> list[str]:
        triples = _RANGE_TRIPLE.findall(args)
        if not triples:
            raise DiscoveryError.invalid_range(args, "expected [start, end, increment]")
        sequences = [
            range_values(float(start), float(end), float(inc)) for start, end, inc in triples
        ]
        return [
            ", ".join(format_number(v) for v in combo) for combo in itertools.product(*sequences)
        ]
