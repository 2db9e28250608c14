"""ctxmigrate error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Detection
- 4xxx: Schema
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Detection (3xxx)
    DETECTION_UNREADABLE_ARTIFACT = 3001
    DETECTION_MALFORMED_HEADER = 3002

    # Schema (4xxx)
    SCHEMA_VALIDATION_FAILED = 4001
    SCHEMA_CONTRACT_NOT_FOUND = 4002
    SCHEMA_CONTRACT_INVALID = 4003
    SCHEMA_DUPLICATE_ID = 4004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CtxMigrateError(Exception):
    """Base error with structured context for diagnostics."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CtxMigrateError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class DetectionError(CtxMigrateError):
    """Artifact detection errors. Never fatal for a run."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "DetectionError":
        return cls(
            code=ErrorCode.DETECTION_UNREADABLE_ARTIFACT,
            message=f"Cannot read artifact {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def malformed_header(cls, path: str, reason: str) -> "DetectionError":
        return cls(
            code=ErrorCode.DETECTION_MALFORMED_HEADER,
            message=f"Malformed header in {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class SchemaError(CtxMigrateError):
    """Schema contract and record validation errors."""

    @classmethod
    def validation_failed(cls, record_id: str | None, errors: list[str]) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_VALIDATION_FAILED,
            message=f"Record '{record_id or '<unknown>'}' failed validation: {'; '.join(errors)}",
            details={"id": record_id, "errors": list(errors)},
        )

    @classmethod
    def contract_not_found(cls, name: str, path: str) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_CONTRACT_NOT_FOUND,
            message=f"Schema contract '{name}' not found at {path}",
            details={"name": name, "path": path},
        )

    @classmethod
    def contract_invalid(cls, name: str, reason: str) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_CONTRACT_INVALID,
            message=f"Schema contract '{name}' is invalid: {reason}",
            details={"name": name, "reason": reason},
        )

    @classmethod
    def duplicate_id(cls, record_id: str, first_path: str, path: str) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_DUPLICATE_ID,
            message=f"Duplicate id '{record_id}' (first seen at {first_path})",
            details={"id": record_id, "first_path": first_path, "path": path},
        )


class InternalError(CtxMigrateError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
