"""Detectors — per-tool detection strategies."""

from toolhub.core.detectors.base import ToolDetector
from toolhub.core.detectors.command import (
    ClaudeCodeDetector,
    CodexDetector,
    CommandToolDetector,
    GeminiCliDetector,
)
from toolhub.core.detectors.registry import DetectorRegistry

__all__ = [
    "ClaudeCodeDetector",
    "CodexDetector",
    "CommandToolDetector",
    "DetectorRegistry",
    "GeminiCliDetector",
    "ToolDetector",
]
