"""
Read models and result types returned to callers.
"""

from __future__ import annotations

from pydantic import BaseModel

from toolhub.core.models.tool import InstallMethod, Tool


class ToolStatus(BaseModel):
    """Lightweight per-tool view rendered by dashboards."""

    id: str
    name: str
    installed: bool = False
    version: str | None = None

    @classmethod
    def absent(cls, tool_id: str, name: str) -> ToolStatus:
        """Status for a tool with no local instance."""
        return cls(id=tool_id, name=name, installed=False, version=None)

    @classmethod
    def for_tool(cls, tool: Tool) -> ToolStatus:
        return cls.absent(tool.id, tool.name)


class InstallerCandidate(BaseModel):
    """An installer binary found near a tool executable."""

    path: str
    installer_type: InstallMethod


class ToolCandidate(BaseModel):
    """A discovered executable the user can pick as a local instance.

    Not persisted.
    """

    tool_path: str
    installer_path: str | None = None
    install_method: InstallMethod = InstallMethod.OFFICIAL
    version: str


class VersionInfo(BaseModel):
    """Answer from the remote version service."""

    has_update: bool = False
    latest_version: str | None = None
    mirror_version: str | None = None
    mirror_is_stale: bool = False


class UpdateResult(BaseModel):
    """Outcome of an update or an update check."""

    success: bool
    message: str = ""
    has_update: bool = False
    current_version: str | None = None
    latest_version: str | None = None
    mirror_version: str | None = None
    mirror_is_stale: bool | None = None
    tool_id: str | None = None
