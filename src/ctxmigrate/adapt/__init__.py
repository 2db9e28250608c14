"""Adapt module - map detected contexts to canonical record fields."""

from ctxmigrate.adapt.adapter import Adapter, is_command_artifact

__all__ = ["Adapter", "is_command_artifact"]
