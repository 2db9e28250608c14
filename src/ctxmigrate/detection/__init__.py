"""Detection module - classify and analyze AI assistant context artifacts."""

from ctxmigrate.detection.classifier import classify, confidence_for, score
from ctxmigrate.detection.detector import ContextDetector, dedup_and_prioritize
from ctxmigrate.detection.models import (
    ConfidenceLevel,
    ContextType,
    DetectedContext,
    DirEntry,
    FileEntry,
    PriorityTier,
)
from ctxmigrate.detection.walker import enumerate_tree, read_text_file

__all__ = [
    "ConfidenceLevel",
    "ContextDetector",
    "ContextType",
    "DetectedContext",
    "DirEntry",
    "FileEntry",
    "PriorityTier",
    "classify",
    "confidence_for",
    "dedup_and_prioritize",
    "enumerate_tree",
    "read_text_file",
    "score",
]
