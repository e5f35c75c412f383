"""
Mock probe — universal test double for command execution.

Used to simulate tool environments without spawning processes.
Configurable per command; unknown commands fail like a missing binary.
"""

from __future__ import annotations

import asyncio

from toolhub.adapters.base import Probe, ProbeResult


class MockProbe(Probe):
    """Scripted probe for testing.

    By default every command fails with exit code 127. Register
    responses with :meth:`set_output` / :meth:`set_failure`.
    """

    def __init__(self, probe_name: str = "mock", available: bool = True):
        self._name = probe_name
        self._available = available
        self._responses: dict[str, ProbeResult] = {}
        self._delays: dict[str, float] = {}
        self._call_log: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[str]:
        """All commands this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_output(self, command: str, stdout: str) -> None:
        """Make a command succeed with the given stdout."""
        self._responses[command] = ProbeResult.ok(stdout=stdout)

    def set_failure(self, command: str, stderr: str = "mock failure", exit_code: int = 1) -> None:
        """Make a command fail."""
        self._responses[command] = ProbeResult.failed(stderr=stderr, exit_code=exit_code)

    def set_delay(self, command: str, seconds: float) -> None:
        """Delay a command's response (for concurrency tests)."""
        self._delays[command] = seconds

    def forget(self, command: str) -> None:
        """Drop a scripted response; the command fails again."""
        self._responses.pop(command, None)

    async def execute(self, command: str) -> ProbeResult:
        self._call_log.append(command)
        delay = self._delays.get(command)
        if delay:
            await asyncio.sleep(delay)
        if command in self._responses:
            return self._responses[command]
        return ProbeResult.failed(stderr=f"{command}: not found", exit_code=127)

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
        self._delays.clear()
