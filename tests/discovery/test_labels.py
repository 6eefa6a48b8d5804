"""Tests for display label formatting."""

from __future__ import annotations

import pytest

from ceedscope.discovery.labels import LabelFormatter


def _formatter(**kwargs: bool) -> LabelFormatter:
    return LabelFormatter("test|spec|should", "test_", **kwargs)


class TestLabelFormatter:
    def test_labels_unchanged_by_default(self) -> None:
        formatter = _formatter()
        assert formatter.test_label("test_Add") == "test_Add"
        assert formatter.file_label("test/test_math.c") == "test/test_math.c"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("test_Add", "Add"), ("should__Work", "Work"), ("specNoUnderscore", "NoUnderscore")],
    )
    def test_pretty_test_label(self, name: str, expected: str) -> None:
        assert _formatter(pretty_test_label=True).test_label(name) == expected

    @pytest.mark.parametrize(
        ("file", "expected"),
        [
            ("test/test_math.c", "math"),
            ("test/unit/TEST_Parser.C", "Parser"),
            ("test_top.c", "test_top.c"),
            ("test/other.c", "test/other.c"),
        ],
    )
    def test_pretty_file_label(self, file: str, expected: str) -> None:
        assert _formatter(pretty_file_label=True).file_label(file) == expected
