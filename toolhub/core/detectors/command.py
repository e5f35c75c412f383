"""
Command-based detectors for the built-in tools.

All three built-in tools are single executables that answer
``--version``; they differ only in their descriptor and in where their
official installers put the binary.
"""

from __future__ import annotations

import logging
from pathlib import Path

from toolhub.adapters.base import Probe
from toolhub.adapters.shell.platform import which_command
from toolhub.core.detectors.base import ToolDetector
from toolhub.core.models import InstallMethod, Tool
from toolhub.core.services.tool_version import parse_version_string

logger = logging.getLogger(__name__)

# Path fragments identifying package-manager-owned installs.
_NPM_MARKERS = ("node_modules", "/.npm-global/", "/.nvm/", "/.volta/", "\\npm\\", "/npm/")
_BREW_MARKERS = ("/opt/homebrew/", "/Cellar/", "/linuxbrew/", "/Homebrew/")


class CommandToolDetector(ToolDetector):
    """Detector driven by a Tool descriptor's check command."""

    #: Path fragments that mark the tool's own (official) installer.
    official_markers: tuple[str, ...] = ()

    def __init__(self, tool: Tool):
        self._tool = tool

    @property
    def tool(self) -> Tool:
        return self._tool

    @property
    def tool_id(self) -> str:
        return self._tool.id

    @property
    def tool_name(self) -> str:
        return self._tool.name

    async def is_installed(self, probe: Probe) -> bool:
        result = await probe.execute(self._tool.check_command)
        return result.success

    async def get_version(self, probe: Probe) -> str | None:
        result = await probe.execute(self._tool.check_command)
        if not result.success or not result.stdout.strip():
            return None
        return parse_version_string(result.stdout)

    async def get_install_path(self, probe: Probe) -> str | None:
        result = await probe.execute(which_command(self._tool.command_name))
        if not result.success:
            return None
        return result.first_line or None

    async def detect_install_method(self, probe: Probe) -> InstallMethod | None:
        path = await self.get_install_path(probe)
        if not path:
            return None
        return self.classify_path(path)

    def classify_path(self, path: str) -> InstallMethod:
        """Infer the install method from an executable's location."""
        resolved = path
        try:
            resolved = str(Path(path).resolve())
        except OSError:
            pass

        for candidate in (resolved, path):
            if any(marker in candidate for marker in self.official_markers):
                return InstallMethod.OFFICIAL
            if any(marker in candidate for marker in _NPM_MARKERS):
                return InstallMethod.NPM
            if any(marker in candidate for marker in _BREW_MARKERS):
                return InstallMethod.BREW
        return InstallMethod.OTHER


class ClaudeCodeDetector(CommandToolDetector):
    official_markers = ("/.claude/local/", "/.claude/bin/", "\\.claude\\", "/.local/share/claude/")

    def __init__(self) -> None:
        super().__init__(_tool("claude-code"))


class CodexDetector(CommandToolDetector):
    def __init__(self) -> None:
        super().__init__(_tool("codex"))


class GeminiCliDetector(CommandToolDetector):
    def __init__(self) -> None:
        super().__init__(_tool("gemini-cli"))


def _tool(tool_id: str) -> Tool:
    tool = Tool.by_id(tool_id)
    if tool is None:
        raise LookupError(f"No tool descriptor for '{tool_id}'")
    return tool
