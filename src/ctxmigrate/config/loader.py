"""Layered configuration loading.

Sources, highest precedence first:
1. Keyword overrides passed to ``load_config``
2. Environment variables ``CTXMIGRATE__<SECTION>__<KEY>``
3. Project file ``<root>/.ctxmigrate/config.yaml``
4. Global file ``~/.config/ctxmigrate/config.yaml``
5. Model defaults

The two YAML files are deep-merged, so a project file only needs the keys
it changes.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ctxmigrate.config.models import (
    AdapterConfig,
    ContractsConfig,
    CtxMigrateConfig,
    DetectionConfig,
    LoggingConfig,
    MigrationConfig,
)
from ctxmigrate.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/ctxmigrate/config.yaml").expanduser()
PROJECT_CONFIG_DIR = ".ctxmigrate"
PROJECT_CONFIG_FILE = "config.yaml"


def read_yaml_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; a missing or empty file is ``{}``.

    Raises:
        ConfigError: Syntax error, or the document is not a mapping
    """
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), f"expected a mapping, got {type(data).__name__}")
    return data


def merge_mappings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive merge; ``override`` wins on conflicts. Inputs are not modified."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = merge_mappings(current, value)
        merged[key] = value
    return merged


class _LayeredYamlSource(PydanticBaseSettingsSource):
    """Settings source over several YAML files, later files winning."""

    def __init__(self, settings_cls: type[BaseSettings], paths: Iterable[Path]) -> None:
        super().__init__(settings_cls)
        self.data: dict[str, Any] = {}
        for path in paths:
            self.data = merge_mappings(self.data, read_yaml_mapping(path))

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        value = self.data.get(field_name)
        return value, field_name, isinstance(value, dict)

    def __call__(self) -> dict[str, Any]:
        return self.data


def _settings_for(paths: list[Path]) -> type[BaseSettings]:
    """Settings class reading ``paths`` beneath env vars and init kwargs."""

    class Settings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="CTXMIGRATE__",
            env_nested_delimiter="__",
            case_sensitive=False,
            extra="forbid",
        )

        logging: LoggingConfig = Field(default_factory=LoggingConfig)
        detection: DetectionConfig = Field(default_factory=DetectionConfig)
        adapter: AdapterConfig = Field(default_factory=AdapterConfig)
        migration: MigrationConfig = Field(default_factory=MigrationConfig)
        contracts: ContractsConfig = Field(default_factory=ContractsConfig)

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _LayeredYamlSource(settings_cls, paths))

    return Settings


def load_config(project_root: Path | None = None, **overrides: Any) -> CtxMigrateConfig:
    """Resolve the configuration for ``project_root`` (default: cwd).

    Raises:
        ConfigError: Unparseable YAML or a value that fails validation
    """
    root = project_root or Path.cwd()
    settings_cls = _settings_for([GLOBAL_CONFIG_PATH, root / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE])
    try:
        raw = settings_cls(**overrides).model_dump()
        return CtxMigrateConfig.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
