"""Fixtures for adapter tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from ceedscope.adapter import CeedlingAdapter
from ceedscope.config.models import ExplorerConfig
from tests.adapter.fakes import (
    FOO_SOURCE,
    MODERN_PROJECT_YML,
    PARAM_SOURCE,
    FakeCeedling,
    FakeLauncher,
    Recorder,
)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "project.yml").write_text(MODERN_PROJECT_YML)
    (tmp_path / "test_foo.c").write_text(FOO_SOURCE)
    (tmp_path / "test_param.c").write_text(PARAM_SOURCE)
    return tmp_path


@pytest.fixture
def ceedling() -> FakeCeedling:
    return FakeCeedling(files={"test": ["test_foo.c", "test_param.c"], "source": ["src/foo.c"]})


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def adapter(workspace: Path, ceedling: FakeCeedling, launcher: FakeLauncher) -> CeedlingAdapter:
    return CeedlingAdapter(workspace, ExplorerConfig(), invoker=ceedling, launcher=launcher)


@pytest.fixture
def recorder(adapter: CeedlingAdapter) -> Recorder:
    return Recorder(adapter)
