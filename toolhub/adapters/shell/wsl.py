"""
WSL probe — run commands inside a Windows Subsystem for Linux distro.

Commands are handed to ``wsl.exe -d <distro> -- sh -lc <command>`` so
the distro's login PATH applies.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess

from toolhub.adapters.base import Probe, ProbeResult
from toolhub.core.errors import BackendUnavailableError
from toolhub.core.services.tool_version import parse_version_string

logger = logging.getLogger(__name__)


class WSLProbe(Probe):
    """Execute commands in a WSL distribution.

    Args:
        distro: Default distro for :meth:`execute` (None = WSL default).
        timeout: Per-command timeout in seconds.
    """

    def __init__(self, distro: str | None = None, timeout: float = 30.0):
        self._distro = distro
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "wsl"

    @staticmethod
    def wsl_binary() -> str | None:
        return shutil.which("wsl") or shutil.which("wsl.exe")

    def is_available(self) -> bool:
        return self.wsl_binary() is not None

    def _argv(self, command: str, distro: str | None) -> list[str]:
        binary = self.wsl_binary() or "wsl"
        argv = [binary]
        if distro:
            argv += ["-d", distro]
        return argv + ["--", "sh", "-lc", command]

    def run(self, command: str, distro: str | None = None) -> ProbeResult:
        if not self.is_available():
            return ProbeResult.failed(stderr="WSL is not available", exit_code=None)

        argv = self._argv(command, distro or self._distro)
        logger.debug("Executing in WSL: %s", argv)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return ProbeResult.failed(
                stderr=f"Command timed out after {self._timeout}s",
                exit_code=None,
            )
        except Exception as e:
            return ProbeResult.failed(stderr=f"Command execution error: {e}", exit_code=None)

        return ProbeResult(
            success=result.returncode == 0,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
            exit_code=result.returncode,
        )

    async def execute(self, command: str, distro: str | None = None) -> ProbeResult:
        return await asyncio.to_thread(self.run, command, distro)

    async def detect_tool_in_distro(
        self,
        distro: str | None,
        command_name: str,
    ) -> tuple[bool, str | None, str | None]:
        """Look for a command inside a distro.

        Returns:
            ``(installed, version, install_path)``.

        Raises:
            BackendUnavailableError: If WSL is missing on this host.
        """
        if not self.is_available():
            raise BackendUnavailableError("WSL is not available; install WSL first")

        located = await self.execute(f"command -v {command_name}", distro)
        path = located.first_line if located.success else ""
        if not path:
            logger.info("%s not found in WSL distro %s", command_name, distro or "(default)")
            return False, None, None

        version_result = await self.execute(f"{command_name} --version", distro)
        version = None
        if version_result.success and version_result.stdout:
            version = parse_version_string(version_result.stdout)
        return True, version, path
