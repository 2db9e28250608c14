"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CTXMIGRATE__SECTION__KEY)
3. Project YAML (.ctxmigrate/config.yaml)
4. Global YAML (~/.config/ctxmigrate/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CTXMIGRATE__<SECTION>__<KEY>=<VALUE>

Examples:
    CTXMIGRATE__LOGGING__LEVEL=DEBUG
    CTXMIGRATE__MIGRATION__WORKERS=4
    CTXMIGRATE__ADAPTER__MAX_TAGS=8
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class _Section(BaseModel):
    """Base for config sections; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class LogOutputConfig(_Section):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(_Section):
    """Logging configuration.

    Env vars:
        CTXMIGRATE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Use -v on the CLI for INFO, -vv for DEBUG.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DetectionConfig(_Section):
    """Artifact detection configuration.

    Env vars:
        CTXMIGRATE__DETECTION__MAX_FILE_SIZE_KB: Skip artifacts larger than this
    """

    max_file_size_kb: int = Field(
        default=512,
        description="Artifacts larger than this are treated as unreadable.",
    )
    text_extensions: list[str] = Field(
        default_factory=lambda: [
            ".md",
            ".mdc",
            ".txt",
            ".js",
            ".ts",
            ".json",
            ".yaml",
            ".yml",
            ".toml",
            ".ini",
            ".rc",
            ".xml",
        ],
        description="Extensions whose content is read and analyzed.",
    )
    extra_excluded_dirs: list[str] = Field(
        default_factory=list,
        description="Directory names pruned in addition to the built-in set.",
    )
    include_dirs: list[str] = Field(
        default_factory=list,
        description="Default-pruned directory names to traverse anyway (e.g. 'vendor').",
    )

    @field_validator("max_file_size_kb")
    @classmethod
    def validate_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size_kb must be positive, got {v}")
        return v

    @field_validator("text_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class AdapterConfig(_Section):
    """Attribute adaptation configuration.

    Env vars:
        CTXMIGRATE__ADAPTER__MAX_TAGS: Tag cap per record
        CTXMIGRATE__ADAPTER__DESCRIPTION_MAX_LENGTH: Truncation point for descriptions
    """

    max_tags: int = Field(default=10, ge=1, le=10)
    description_max_length: int = Field(default=200, ge=20)


class MigrationConfig(_Section):
    """Migration run configuration.

    Env vars:
        CTXMIGRATE__MIGRATION__WORKERS: Parallel per-artifact workers
        CTXMIGRATE__MIGRATION__FORCE: Re-migrate records that are already canonical
        CTXMIGRATE__MIGRATION__OUTPUT_DIR: Where converted records are written
    """

    workers: int = Field(
        default=1,
        description="Per-artifact worker threads. Results are identical for any value.",
    )
    force: bool = Field(default=False)
    output_dir: str = Field(
        default=".ai/blueprints",
        description="Output directory, relative to the project root unless absolute.",
    )

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if not (1 <= v <= 64):
            raise ValueError(f"workers must be 1-64, got {v}")
        return v


class ContractsConfig(_Section):
    """Schema contract configuration.

    Env vars:
        CTXMIGRATE__CONTRACTS__DIRECTORY: Directory of <type>.yaml contracts overriding the bundled ones
    """

    directory: str | None = None


class CtxMigrateConfig(_Section):
    """Root configuration for ctxmigrate.

    All settings can be configured via:
    1. Environment variables: CTXMIGRATE__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    adapter: AdapterConfig = Field(default_factory=AdapterConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    contracts: ContractsConfig = Field(default_factory=ContractsConfig)
