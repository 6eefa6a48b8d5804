"""Test tree node types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass
class TestNode:
    """A single test function or one concrete parameterized case."""

    __test__ = False

    id: str
    label: str
    file: str
    line: int  # 0-based
    project_key: str
    type: Literal["test"] = "test"


@dataclass
class SuiteNode:
    """Grouping node: the root, a project, a source file or a parameterized test."""

    id: str
    label: str
    file: str | None = None
    project_key: str | None = None
    is_project_root: bool = False
    children: list[Node] = field(default_factory=list)
    type: Literal["suite"] = "suite"

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "type": self.type,
            "id": self.id,
            "label": self.label,
            "children": [
                child.to_dict() if isinstance(child, SuiteNode) else _test_to_dict(child)
                for child in self.children
            ],
        }
        if self.file is not None:
            data["file"] = self.file
        if self.project_key is not None:
            data["project_key"] = self.project_key
        if self.is_project_root:
            data["is_project_root"] = True
        return data


Node = SuiteNode | TestNode


def _test_to_dict(test: TestNode) -> dict[str, object]:
    return {
        "type": test.type,
        "id": test.id,
        "label": test.label,
        "file": test.file,
        "line": test.line,
        "project_key": test.project_key,
    }
