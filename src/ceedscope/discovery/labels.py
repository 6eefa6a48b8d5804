"""Display labels for file suites and test functions."""

from __future__ import annotations

import re


class LabelFormatter:
    """Shortens labels by dropping the Ceedling naming prefixes.

    ``test_math.c`` becomes ``math`` and ``test_ShouldAdd`` becomes
    ``ShouldAdd`` when the corresponding option is enabled. Labels that do
    not match are returned unchanged.
    """

    def __init__(
        self,
        test_prefix: str,
        test_file_prefix: str,
        *,
        pretty_test_label: bool = False,
        pretty_file_label: bool = False,
    ) -> None:
        self._pretty_test_label = pretty_test_label
        self._pretty_file_label = pretty_file_label
        self._test_regex = re.compile(rf"(?:{test_prefix})_*(.*)")
        self._file_regex = re.compile(rf".*/{re.escape(test_file_prefix)}(.*)\.c", re.IGNORECASE)

    def test_label(self, test_name: str) -> str:
        if not self._pretty_test_label:
            return test_name
        match = self._test_regex.search(test_name)
        return match.group(1) if match else test_name

    def file_label(self, file_name: str) -> str:
        if not self._pretty_file_label:
            return file_name
        match = self._file_regex.search(file_name)
        return match.group(1) if match else file_name
