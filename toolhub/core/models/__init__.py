"""
Domain models — Pydantic types for toolhub.

All models are re-exported here for convenient access:

    from toolhub.core.models import Tool, ToolInstance, ToolStatus
"""

from toolhub.core.models.instance import SSHConfig, ToolInstance
from toolhub.core.models.status import (
    InstallerCandidate,
    ToolCandidate,
    ToolStatus,
    UpdateResult,
    VersionInfo,
)
from toolhub.core.models.tool import InstallMethod, Tool, ToolType, all_tools, tool_ids

__all__ = [
    # tool.py
    "InstallMethod",
    "Tool",
    "ToolType",
    "all_tools",
    "tool_ids",
    # instance.py
    "SSHConfig",
    "ToolInstance",
    # status.py
    "InstallerCandidate",
    "ToolCandidate",
    "ToolStatus",
    "UpdateResult",
    "VersionInfo",
]
