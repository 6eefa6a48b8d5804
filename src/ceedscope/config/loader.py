"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CEEDSCOPE__SECTION__KEY)
3. Workspace config (.ceedscope/config.yaml)
4. Global config (~/.config/ceedscope/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ceedscope.config.constants import (
    DEFAULT_TEST_CASE_MACROS,
    DEFAULT_TEST_COMMAND_ARGS,
    DEFAULT_TEST_RANGE_MACROS,
    DEFAULT_TOOL,
)
from ceedscope.config.models import (
    ExplorerConfig,
    LoggingConfig,
    ProblemMatchingConfig,
    ProjectConfig,
)
from ceedscope.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/ceedscope/config.yaml").expanduser()
WORKSPACE_CONFIG_DIR = ".ceedscope"


def load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested mappings merge recursively."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class ExplorerSettings(BaseSettings):
        """Root config. Env vars: CEEDSCOPE__SHELL_PATH, CEEDSCOPE__LOGGING__LEVEL, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CEEDSCOPE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        projects: list[ProjectConfig] = []
        tool: str = DEFAULT_TOOL
        shell_path: str | None = None
        test_command_args: list[str] = list(DEFAULT_TEST_COMMAND_ARGS)
        test_case_macro_aliases: list[str] = list(DEFAULT_TEST_CASE_MACROS)
        test_range_macro_aliases: list[str] = list(DEFAULT_TEST_RANGE_MACROS)
        pretty_test_label: bool = False
        pretty_test_file_label: bool = False
        ansi_escape_sequences_removed: bool = True
        problem_matching: ProblemMatchingConfig = ProblemMatchingConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return ExplorerSettings


def load_config(workspace_root: Path | None = None, **kwargs: Any) -> ExplorerConfig:
    """Load config: defaults < global yaml < workspace yaml < env vars < kwargs.

    Args:
        workspace_root: Workspace to load config from.
                        Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    workspace_root = workspace_root or Path.cwd()

    yaml_config = load_yaml(GLOBAL_CONFIG_PATH)
    workspace_config = load_yaml(workspace_root / WORKSPACE_CONFIG_DIR / "config.yaml")
    if workspace_config:
        yaml_config = deep_merge(yaml_config, workspace_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return ExplorerConfig.model_validate(settings.model_dump())
