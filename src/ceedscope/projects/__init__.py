"""Project registry and Ceedling project configuration."""

from ceedscope.projects.models import FileType, Project, ProjectSettings
from ceedscope.projects.registry import resolve_projects
from ceedscope.projects.ymldata import (
    check_project_data,
    dig,
    load_project_data,
    settings_from_data,
)

__all__ = [
    "FileType",
    "Project",
    "ProjectSettings",
    "check_project_data",
    "dig",
    "load_project_data",
    "resolve_projects",
    "settings_from_data",
]
