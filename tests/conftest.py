"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from toolhub.adapters.mock import MockProbe
from toolhub.adapters.shell.platform import which_command
from toolhub.adapters.shell.wsl import WSLProbe
from toolhub.core.errors import ProbeFailureError
from toolhub.core.models import Tool, ToolInstance, UpdateResult, VersionInfo
from toolhub.core.persistence.instance_store import InstanceStore
from toolhub.core.services.status_cache import ToolStatusCache
from toolhub.core.services.tool_registry import ToolRegistry


# ── Collaborator fakes ──────────────────────────────────────────────


class FakeVersionService:
    """Answers check_version from a fixed VersionInfo, or fails."""

    def __init__(self, info: VersionInfo | None = None, error: str | None = None):
        self.info = info or VersionInfo(has_update=False, latest_version="1.0.0")
        self.error = error
        self.calls: list[tuple[str, str | None]] = []

    async def check_version(self, tool: Tool, current_version: str | None = None) -> VersionInfo:
        self.calls.append((tool.id, current_version))
        if self.error:
            raise ProbeFailureError(self.error)
        return self.info


class FakeInstaller:
    """Reports a fixed new version, or raises a fixed error."""

    def __init__(self, new_version: str = "9.9.9", error: Exception | None = None):
        self.new_version = new_version
        self.error = error
        self.calls: list[tuple[str, bool]] = []

    async def update_instance_by_installer(self, instance: ToolInstance, force: bool = False):
        self.calls.append((instance.instance_id, force))
        if self.error:
            raise self.error
        return UpdateResult(
            success=True,
            message=f"{instance.tool_name} updated to {self.new_version}",
            current_version=self.new_version,
            tool_id=instance.base_id,
        )


class FakeWSLProbe(WSLProbe):
    """WSL probe with a scripted availability and detection result."""

    def __init__(self, available: bool = True, result=(True, "1.2.3", "/usr/bin/claude")):
        super().__init__()
        self._available = available
        self._result = result
        self.calls: list[tuple[str | None, str]] = []

    def is_available(self) -> bool:
        return self._available

    async def detect_tool_in_distro(self, distro, command_name):
        self.calls.append((distro, command_name))
        return self._result


def install_tool(probe: MockProbe, tool_id: str, version: str, path: str) -> None:
    """Script a MockProbe so a built-in tool looks installed at ``path``."""
    tool = Tool.by_id(tool_id)
    probe.set_output(tool.check_command, version)
    probe.set_output(which_command(tool.command_name), path)


def uninstall_tool(probe: MockProbe, tool_id: str) -> None:
    tool = Tool.by_id(tool_id)
    probe.forget(tool.check_command)
    probe.forget(which_command(tool.command_name))


# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def store(tmp_path: Path) -> InstanceStore:
    """An initialised, empty instance store in a temp directory."""
    s = InstanceStore(tmp_path / "data" / "tool_instances.json")
    s.init_tables()
    return s


@pytest.fixture
def probe() -> MockProbe:
    return MockProbe()


@pytest.fixture
def version_service() -> FakeVersionService:
    return FakeVersionService()


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture
def wsl_probe() -> FakeWSLProbe:
    return FakeWSLProbe()


@pytest.fixture
def registry(store, probe, version_service, installer, wsl_probe, tmp_path) -> ToolRegistry:
    """A ToolRegistry wired to fakes; nothing touches the real machine."""
    return ToolRegistry(
        store=store,
        probe=probe,
        wsl_probe=wsl_probe,
        version_service=version_service,
        installer=installer,
        status_cache=ToolStatusCache(ttl=60),
        scan_dirs=[tmp_path / "bin"],
    )


@pytest.fixture
def ticking_clock(monkeypatch):
    """Make every new instance timestamp one second later than the last."""
    counter = itertools.count(1_700_000_000)
    monkeypatch.setattr("toolhub.core.models.instance._now_ts", lambda: next(counter))
    return counter
