"""
ToolInstance — one concrete, addressable occurrence of a tool.

Instances are the rows of the instance store. Their IDs follow
``{base_id}-{kind}-{discriminator}`` where the discriminator is the
creation timestamp for local instances, the distro name for WSL and the
SSH target slug for SSH.
"""

from __future__ import annotations

import re
import time

from pydantic import BaseModel, Field, model_validator

from toolhub.core.models.tool import InstallMethod, ToolType


def _now_ts() -> int:
    """Current time as Unix seconds."""
    return int(time.time())


_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._@-]+")


class SSHConfig(BaseModel):
    """Connection details for a remote SSH host."""

    host: str
    port: int = 22
    user: str
    key_path: str | None = None

    @property
    def slug(self) -> str:
        """Discriminator used in instance IDs (``user@host-port``)."""
        raw = f"{self.user}@{self.host}-{self.port}"
        return _UNSAFE_ID_CHARS.sub("_", raw)


class ToolInstance(BaseModel):
    """A tool installed (or expected) in one specific environment."""

    instance_id: str
    base_id: str
    tool_name: str
    tool_type: ToolType

    install_method: InstallMethod | None = None
    installed: bool = False
    version: str | None = None
    install_path: str | None = None
    installer_path: str | None = None

    wsl_distro: str | None = None
    ssh_config: SSHConfig | None = None

    is_builtin: bool = False
    created_at: int = Field(default_factory=_now_ts)
    updated_at: int = Field(default_factory=_now_ts)

    @model_validator(mode="after")
    def _check_discriminator(self) -> ToolInstance:
        if self.tool_type is ToolType.WSL:
            if not self.wsl_distro or self.ssh_config is not None:
                raise ValueError("WSL instances need wsl_distro and no ssh_config")
        elif self.tool_type is ToolType.SSH:
            if self.ssh_config is None or self.wsl_distro is not None:
                raise ValueError("SSH instances need ssh_config and no wsl_distro")
        elif self.wsl_distro is not None or self.ssh_config is not None:
            raise ValueError("local instances cannot carry wsl_distro or ssh_config")
        return self

    # ── Factories ────────────────────────────────────────────────

    @classmethod
    def create_local(
        cls,
        base_id: str,
        tool_name: str,
        *,
        installed: bool,
        version: str | None = None,
        install_path: str | None = None,
        install_method: InstallMethod | None = None,
        installer_path: str | None = None,
        is_builtin: bool = True,
        now: int | None = None,
    ) -> ToolInstance:
        ts = now if now is not None else _now_ts()
        return cls(
            instance_id=f"{base_id}-local-{ts}",
            base_id=base_id,
            tool_name=tool_name,
            tool_type=ToolType.LOCAL,
            install_method=install_method,
            installed=installed,
            version=version,
            install_path=install_path,
            installer_path=installer_path,
            is_builtin=is_builtin,
            created_at=ts,
            updated_at=ts,
        )

    @classmethod
    def create_wsl(
        cls,
        base_id: str,
        tool_name: str,
        distro: str,
        *,
        installed: bool,
        version: str | None = None,
        install_path: str | None = None,
    ) -> ToolInstance:
        return cls(
            instance_id=f"{base_id}-wsl-{_UNSAFE_ID_CHARS.sub('_', distro)}",
            base_id=base_id,
            tool_name=tool_name,
            tool_type=ToolType.WSL,
            installed=installed,
            version=version,
            install_path=install_path,
            wsl_distro=distro,
        )

    @classmethod
    def create_ssh(
        cls,
        base_id: str,
        tool_name: str,
        config: SSHConfig,
        *,
        installed: bool = False,
        version: str | None = None,
        install_path: str | None = None,
    ) -> ToolInstance:
        return cls(
            instance_id=f"{base_id}-ssh-{config.slug}",
            base_id=base_id,
            tool_name=tool_name,
            tool_type=ToolType.SSH,
            installed=installed,
            version=version,
            install_path=install_path,
            ssh_config=config,
        )

    # ── Queries ──────────────────────────────────────────────────

    @property
    def is_local(self) -> bool:
        return self.tool_type is ToolType.LOCAL

    @property
    def is_deletable(self) -> bool:
        """Only user-added SSH instances may be deleted."""
        return self.tool_type is ToolType.SSH and not self.is_builtin

    def with_version(self, version: str | None) -> ToolInstance:
        """Copy of this instance with a new version and refreshed timestamp."""
        return self.model_copy(update={"version": version, "updated_at": _now_ts()})
