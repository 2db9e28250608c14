"""Config module exports."""

from ctxmigrate.config.loader import load_config
from ctxmigrate.config.models import (
    AdapterConfig,
    ContractsConfig,
    CtxMigrateConfig,
    DetectionConfig,
    LoggingConfig,
    MigrationConfig,
)

__all__ = [
    "load_config",
    "AdapterConfig",
    "ContractsConfig",
    "CtxMigrateConfig",
    "DetectionConfig",
    "LoggingConfig",
    "MigrationConfig",
]
