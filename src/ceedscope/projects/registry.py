"""Project registry: configured project entries -> resolved projects."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from ceedscope.config.constants import (
    DEFAULT_DEBUG_LAUNCH_CONFIG,
    DEFAULT_PROJECT_FILE,
    DEFAULT_PROJECT_KEY,
)
from ceedscope.config.models import ProjectConfig
from ceedscope.core.errors import ConfigError
from ceedscope.projects.models import Project

log = structlog.get_logger(__name__)


def _split_yml_path(path: str) -> tuple[str, str]:
    """Split a configured path into (directory, yml file name)."""
    if not path.endswith(".yml"):
        return path, DEFAULT_PROJECT_FILE
    normalized = path.replace("\\", "/")
    directory, _, yml_name = normalized.rpartition("/")
    return directory or ".", yml_name


def _project_key(config: ProjectConfig, yml_name: str) -> str:
    if config.name:
        return config.name
    if yml_name != DEFAULT_PROJECT_FILE:
        return yml_name[: -len(".yml")]
    return config.path


def _workspace_path(workspace_root: Path) -> Path:
    text = str(workspace_root)
    # Gcov xml reports require an upper-case drive letter on Windows
    if sys.platform == "win32" and text:
        text = text[0].upper() + text[1:]
    return Path(text)


def resolve_projects(
    configs: Sequence[ProjectConfig], workspace_root: Path
) -> dict[str, Project]:
    """Resolve configured projects, keyed by project key, in configuration order.

    Raises:
        ConfigError: If a configured directory does not exist or is not a directory.
    """
    workspace = _workspace_path(workspace_root)
    projects: dict[str, Project] = {}

    for config in configs:
        directory, yml_name = _split_yml_path(config.path)
        key = _project_key(config, yml_name)
        abs_path = (workspace / directory).resolve()
        if not abs_path.is_dir():
            raise ConfigError.project_path_invalid(str(abs_path))
        if key in projects:
            log.warning("project_key_reused", key=key, path=str(abs_path))
        projects[key] = Project(
            key=key,
            path=directory,
            abs_path=abs_path,
            yml_file_name=yml_name,
            debug_launch_config=config.debug_launch_config,
        )

    if not projects:
        projects[DEFAULT_PROJECT_KEY] = Project(
            key=DEFAULT_PROJECT_KEY,
            path=".",
            abs_path=workspace.resolve(),
            yml_file_name=DEFAULT_PROJECT_FILE,
            debug_launch_config=DEFAULT_DEBUG_LAUNCH_CONFIG,
        )

    log.debug("projects_resolved", keys=list(projects))
    return projects
