"""Canonical record models.

Header keys are camelCase on disk; Python attributes are snake_case. The
record variant is carried by the ``type`` header key (``kind`` in Python).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RecordKind = Literal["blueprint", "command"]


class _HeaderModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlatformCapability(BaseModel):
    """One platform entry. Platform-specific fields ride along as extras."""

    model_config = ConfigDict(extra="allow")

    compatible: bool = True


class CommandArguments(_HeaderModel):
    supports: bool = False
    placeholder: str = "$ARGUMENTS"


class CommandSpec(_HeaderModel):
    """Command block for ``type: command`` records."""

    command_type: Literal["slash", "custom-slash"] = "custom-slash"
    target: str = "claude-code"
    slash_command: str
    arguments: CommandArguments = Field(default_factory=CommandArguments)
    file_references: list[str] = Field(default_factory=list)
    bash_commands: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)


class MigrationInfo(_HeaderModel):
    """Provenance of a record produced from a detected artifact."""

    original_source: str
    original_path: str
    confidence: str
    migration_date: str


class CanonicalRecord(_HeaderModel):
    """Versioned, schema-validated record every artifact is normalized into."""

    id: str
    kind: RecordKind = Field(default="blueprint", alias="type")
    title: str
    description: str
    version: str = "1.0.0"
    category: str
    subcategory: str | None = None
    complexity: str
    scope: str
    audience: str
    maturity: str
    platforms: dict[str, PlatformCapability]
    tags: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    suggests: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    supersedes: list[str] = Field(default_factory=list)
    author: str | None = None
    last_updated: str | None = None
    content_sections: list[str] = Field(default_factory=list)
    migration: MigrationInfo | None = None
    command: CommandSpec | None = None
    body: str = Field(default="", exclude=True)

    def to_header(self) -> dict[str, Any]:
        """Plain header mapping with camelCase keys, as written to disk."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
