"""
Tool descriptors — the static table of tools toolhub knows about.

A Tool is immutable and defined once per process. The table is built
lazily on first access and never mutated afterwards; look tools up with
``Tool.by_id``.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict


class ToolType(StrEnum):
    """Execution environment an instance lives in."""

    LOCAL = "local"
    WSL = "wsl"
    SSH = "ssh"


class InstallMethod(StrEnum):
    """How a tool instance was installed."""

    NPM = "npm"
    BREW = "brew"
    OFFICIAL = "official"
    OTHER = "other"

    @property
    def requires_installer(self) -> bool:
        """Whether instances using this method must record an installer path."""
        return self is not InstallMethod.OTHER


class Tool(BaseModel):
    """Static descriptor of a supported tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    check_command: str              # e.g. "claude --version"
    npm_package: str | None = None
    brew_formula: str | None = None

    @property
    def command_name(self) -> str:
        """The executable name (first word of the check command)."""
        return self.check_command.split()[0]

    @classmethod
    def by_id(cls, tool_id: str) -> Tool | None:
        """Look up a tool descriptor by ID."""
        for tool in all_tools():
            if tool.id == tool_id:
                return tool
        return None

    @classmethod
    def all(cls) -> tuple[Tool, ...]:
        return all_tools()


@lru_cache(maxsize=1)
def all_tools() -> tuple[Tool, ...]:
    """The process-wide tool table."""
    return (
        Tool(
            id="claude-code",
            name="Claude Code",
            check_command="claude --version",
            npm_package="@anthropic-ai/claude-code",
        ),
        Tool(
            id="codex",
            name="CodeX",
            check_command="codex --version",
            npm_package="@openai/codex",
            brew_formula="codex",
        ),
        Tool(
            id="gemini-cli",
            name="Gemini CLI",
            check_command="gemini --version",
            npm_package="@google/gemini-cli",
            brew_formula="gemini-cli",
        ),
    )


def tool_ids() -> list[str]:
    """IDs of every known tool, in table order."""
    return [tool.id for tool in all_tools()]
