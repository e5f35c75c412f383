"""
Detector base — how one kind of tool is found on a machine.

Each supported tool gets one ToolDetector. Detectors issue probe
commands and interpret the output; they hold no state between calls
and never write anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from toolhub.adapters.base import Probe
from toolhub.core.models import InstallMethod


class ToolDetector(ABC):
    """Abstract per-tool detection strategy.

    To support a new tool:
        1. Subclass ToolDetector (or CommandToolDetector)
        2. Implement the identity properties and the four probes
        3. Register it in the DetectorRegistry
    """

    @property
    @abstractmethod
    def tool_id(self) -> str:
        """The tool identifier (e.g., 'claude-code')."""

    @property
    @abstractmethod
    def tool_name(self) -> str:
        """Human-readable tool name."""

    @abstractmethod
    async def is_installed(self, probe: Probe) -> bool:
        """Whether the tool responds to its check command."""

    @abstractmethod
    async def get_version(self, probe: Probe) -> str | None:
        """The version the tool reports, or None."""

    @abstractmethod
    async def get_install_path(self, probe: Probe) -> str | None:
        """Absolute path of the executable, or None."""

    @abstractmethod
    async def detect_install_method(self, probe: Probe) -> InstallMethod | None:
        """How the tool was installed, or None when unknown."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} tool_id={self.tool_id!r}>"
