"""
Local command probe — run shell commands on this machine.

This is the most fundamental probe: it runs commands and captures
their output. Commands run in a worker thread so a batch of probes can
be awaited concurrently without blocking the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import time

from toolhub.adapters.base import Probe, ProbeResult
from toolhub.adapters.shell.platform import build_enhanced_path, is_windows

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class LocalCommandProbe(Probe):
    """Execute shell commands locally and capture output.

    Args:
        timeout: Per-command timeout in seconds.
        enhance_path: Prepend well-known tool directories to PATH.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, enhance_path: bool = True):
        self._timeout = timeout
        self._enhance_path = enhance_path

    @property
    def name(self) -> str:
        return "local"

    @property
    def timeout(self) -> float:
        return self._timeout

    def is_available(self) -> bool:
        if is_windows():
            return shutil.which("cmd") is not None
        return shutil.which("sh") is not None

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._enhance_path:
            env["PATH"] = build_enhanced_path(env.get("PATH", ""))
        return env

    def run(self, command: str) -> ProbeResult:
        """Blocking variant of :meth:`execute`."""
        logger.debug("Executing: %s", command)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=self._env(),
            )
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss: %s", self._timeout, command)
            return ProbeResult.failed(
                stderr=f"Command timed out after {self._timeout}s",
                exit_code=None,
            )
        except Exception as e:
            logger.warning("Command execution error for %s: %s", command, e)
            return ProbeResult.failed(
                stderr=f"Command execution error: {e}",
                exit_code=None,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            "Command %r exited %d in %dms", command, result.returncode, elapsed_ms
        )
        return ProbeResult(
            success=result.returncode == 0,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
            exit_code=result.returncode,
        )

    async def execute(self, command: str) -> ProbeResult:
        return await asyncio.to_thread(self.run, command)
