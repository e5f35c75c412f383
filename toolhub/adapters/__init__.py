"""Adapters — command probes for local and WSL environments.

Public re-exports for convenient access.
"""

from toolhub.adapters.base import Probe, ProbeResult
from toolhub.adapters.mock import MockProbe
from toolhub.adapters.shell.command import LocalCommandProbe
from toolhub.adapters.shell.wsl import WSLProbe

__all__ = [
    "LocalCommandProbe",
    "MockProbe",
    "Probe",
    "ProbeResult",
    "WSLProbe",
]
