"""Core module exports."""

from ctxmigrate.core.errors import (
    ConfigError,
    CtxMigrateError,
    DetectionError,
    ErrorCode,
    InternalError,
    SchemaError,
)
from ctxmigrate.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from ctxmigrate.core.progress import pluralize, status

__all__ = [
    # Errors
    "ConfigError",
    "CtxMigrateError",
    "DetectionError",
    "ErrorCode",
    "InternalError",
    "SchemaError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Console
    "pluralize",
    "status",
]
