"""
Detector registry — lookup of detectors by tool ID.

The tool registry never branches on tool identity; it asks this
registry for the detector of a tool, or for all of them in bulk.
"""

from __future__ import annotations

import logging

from toolhub.core.detectors.base import ToolDetector
from toolhub.core.detectors.command import (
    ClaudeCodeDetector,
    CodexDetector,
    GeminiCliDetector,
)

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Central registry of tool detectors, keyed by tool ID."""

    def __init__(self, detectors: list[ToolDetector] | None = None):
        self._detectors: dict[str, ToolDetector] = {}
        for detector in detectors or []:
            self.register(detector)

    @classmethod
    def default(cls) -> DetectorRegistry:
        """Registry with every built-in detector."""
        return cls([ClaudeCodeDetector(), CodexDetector(), GeminiCliDetector()])

    def register(self, detector: ToolDetector) -> None:
        tool_id = detector.tool_id
        if tool_id in self._detectors:
            logger.warning("Overwriting existing detector: %s", tool_id)
        self._detectors[tool_id] = detector
        logger.debug("Registered detector: %s", tool_id)

    def unregister(self, tool_id: str) -> None:
        self._detectors.pop(tool_id, None)

    def get(self, tool_id: str) -> ToolDetector | None:
        return self._detectors.get(tool_id)

    def list_ids(self) -> list[str]:
        return list(self._detectors.keys())

    def all_detectors(self) -> list[ToolDetector]:
        return list(self._detectors.values())

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._detectors

    def __len__(self) -> int:
        return len(self._detectors)
