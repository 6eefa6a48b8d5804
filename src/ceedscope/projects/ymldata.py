"""Reading a project's Ceedling configuration (project.yml and mixins).

Ceedling configuration is schema-less YAML whose keys are symbols
(``:project``, ``:unity`` ...). Every lookup goes through ``dig`` so that a
missing level yields the documented default instead of an exception.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from ceedscope.config.constants import (
    DEFAULT_BUILD_ROOT,
    DEFAULT_EXECUTABLE_EXTENSION,
    DEFAULT_TEST_FILE_PREFIX,
    DEFAULT_TEST_PREFIX,
    LEGACY_REPORT_FILENAME,
    MODERN_REPORT_FILENAME,
    REPORT_FACTORY_FORMAT,
    REPORT_FACTORY_PLUGIN,
)
from ceedscope.config.loader import deep_merge
from ceedscope.core.errors import ConfigError
from ceedscope.projects.models import Project, ProjectSettings

log = structlog.get_logger(__name__)


def dig(data: Any, *keys: str, default: Any = None) -> Any:
    """Follow ``keys`` through nested mappings; ``default`` if any level is absent."""
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return default if current is None else current


def _read_yml(path: Path) -> dict[str, Any] | None:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        log.error("project_yml_read_failed", path=str(path), error=str(e))
        return None
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        log.error("project_yml_parse_failed", path=str(path), error=str(e))
        return None
    if not isinstance(data, dict):
        log.error("project_yml_not_a_mapping", path=str(path))
        return None
    return data


def load_project_data(project: Project) -> dict[str, Any] | None:
    """Load the project's configuration document.

    A mixin file (anything other than project.yml) is deep-merged over the
    project.yml found in the same directory, the mixin's keys taking
    precedence. Returns None when the project's own file cannot be loaded.
    """
    data = _read_yml(project.yml_path)
    if data is None or not project.uses_mixin:
        return data

    defaults = _read_yml(project.default_yml_path)
    if defaults is None:
        return data
    return deep_merge(defaults, data)


def settings_from_data(data: dict[str, Any] | None, *, modern: bool) -> ProjectSettings:
    """Derive engine settings from configuration data (None gives all defaults)."""
    if modern:
        report_filename = dig(
            data, ":report_tests_log_factory", ":cppunit", ":filename",
            default=MODERN_REPORT_FILENAME,
        )
    else:
        report_filename = dig(
            data, ":xml_tests_report", ":artifact_filename", default=LEGACY_REPORT_FILENAME
        )

    defines = dig(data, ":defines", default={})
    test_defines: frozenset[str] = frozenset()
    if isinstance(defines, dict):
        test_defines = frozenset(str(key).lstrip(":") for key in defines)

    return ProjectSettings(
        build_root=str(dig(data, ":project", ":build_root", default=DEFAULT_BUILD_ROOT)),
        report_filename=str(report_filename),
        test_prefix=str(dig(data, ":unity", ":test_prefix", default=DEFAULT_TEST_PREFIX)),
        test_file_prefix=str(
            dig(data, ":project", ":test_file_prefix", default=DEFAULT_TEST_FILE_PREFIX)
        ),
        executable_extension=str(
            dig(data, ":extension", ":executable", default=DEFAULT_EXECUTABLE_EXTENSION)
        ),
        test_defines=test_defines,
    )


def check_project_data(
    project: Project, data: dict[str, Any] | None, *, modern: bool
) -> ConfigError | None:
    """Return the configuration problem that prevents running this project, if any."""
    if data is None:
        return ConfigError.file_not_found(str(project.yml_path))
    if not modern:
        return None

    enabled = dig(data, ":plugins", ":enabled", default=[])
    if not isinstance(enabled, list) or REPORT_FACTORY_PLUGIN not in enabled:
        return ConfigError.plugin_missing(REPORT_FACTORY_PLUGIN, str(project.yml_path))

    reports = dig(data, ":report_tests_log_factory", ":reports")
    if isinstance(reports, list) and REPORT_FACTORY_FORMAT not in reports:
        return ConfigError.plugin_missing(
            REPORT_FACTORY_PLUGIN,
            str(project.yml_path),
            reason=f"Add '{REPORT_FACTORY_FORMAT}' to its :reports list.",
        )
    return None
