"""
Probe base — the contract between the registry and command execution.

A probe runs one shell command in some target environment and reports
what happened. The registry and detectors only talk to environments
through this protocol, never by spawning processes themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class ProbeResult(BaseModel):
    """Outcome of one probe command.

    Probes NEVER raise for a failing command — failures are captured
    here with ``success=False``. ``exit_code`` is None when the command
    could not be started or timed out.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None

    @property
    def first_line(self) -> str:
        """First non-empty stdout line, stripped."""
        for line in self.stdout.splitlines():
            line = line.strip()
            if line:
                return line
        return ""

    @classmethod
    def ok(cls, stdout: str = "", stderr: str = "") -> ProbeResult:
        return cls(success=True, stdout=stdout, stderr=stderr, exit_code=0)

    @classmethod
    def failed(
        cls,
        stderr: str = "",
        exit_code: int | None = 1,
        stdout: str = "",
    ) -> ProbeResult:
        return cls(success=False, stdout=stdout, stderr=stderr, exit_code=exit_code)


class Probe(ABC):
    """Abstract base class for command probes.

    To create a new probe:
        1. Subclass Probe
        2. Implement name, is_available, execute
        3. Hand it to the ToolRegistry (or a detector call)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The probe identifier (e.g., 'local', 'wsl')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether this probe's backend exists on the host.

        Should be fast and never raise.
        """

    @abstractmethod
    async def execute(self, command: str) -> ProbeResult:
        """Run a command and capture its output.

        MUST never raise for command failures.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
