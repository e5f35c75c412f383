"""
Path scanning — find every local copy of a tool and its installer.

Used when the user wants to pick one of several local installations
instead of trusting PATH order.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from toolhub.adapters.shell.platform import is_windows, search_dirs
from toolhub.core.models import InstallerCandidate, InstallMethod, Tool

logger = logging.getLogger(__name__)

_WINDOWS_SUFFIXES = ("", ".cmd", ".exe", ".bat", ".ps1")

_BREW_LOCATIONS = (
    "/opt/homebrew/bin/brew",
    "/usr/local/bin/brew",
    "/home/linuxbrew/.linuxbrew/bin/brew",
)


def _executable_names(command: str) -> list[str]:
    if is_windows():
        return [command + suffix for suffix in _WINDOWS_SUFFIXES]
    return [command]


def _is_executable_file(path: Path) -> bool:
    return path.is_file() and (is_windows() or os.access(path, os.X_OK))


def scan_tool_executables(tool: Tool, dirs: list[Path] | None = None) -> list[str]:
    """All executables named like the tool's command, in lookup order.

    Args:
        tool: The tool descriptor.
        dirs: Directories to search (default: the enhanced PATH).

    Returns:
        Unique absolute paths. Symlinks to the same target are kept
        once, under the first name they were found as.
    """
    found: list[str] = []
    seen_targets: set[str] = set()

    for directory in dirs if dirs is not None else search_dirs():
        for name in _executable_names(tool.command_name):
            candidate = directory / name
            try:
                if not _is_executable_file(candidate):
                    continue
                target = str(candidate.resolve())
            except OSError:
                continue
            if target in seen_targets:
                continue
            seen_targets.add(target)
            found.append(str(candidate))

    logger.debug("Found %d executables for %s", len(found), tool.id)
    return found


def scan_installer_paths(tool_path: str) -> list[InstallerCandidate]:
    """Installers plausibly responsible for a tool executable.

    npm next to the executable (or in its prefix's ``bin``) comes first,
    then Homebrew when the tool lives under a Homebrew prefix.
    """
    candidates: list[InstallerCandidate] = []
    path = Path(tool_path)
    try:
        resolved = path.resolve()
    except OSError:
        resolved = path

    npm_dirs = [path.parent, path.parent.parent / "bin"]
    if "node_modules" in resolved.parts:
        # <prefix>/lib/node_modules/<pkg>/... → <prefix>/bin
        idx = resolved.parts.index("node_modules")
        prefix = Path(*resolved.parts[:idx]).parent
        npm_dirs.append(prefix / "bin")
    for directory in npm_dirs:
        for name in _executable_names("npm"):
            npm = directory / name
            if npm.is_file() and str(npm) not in {c.path for c in candidates}:
                candidates.append(
                    InstallerCandidate(path=str(npm), installer_type=InstallMethod.NPM)
                )

    text = str(resolved)
    if "homebrew" in text.lower() or "/Cellar/" in text or "linuxbrew" in text:
        for brew in _BREW_LOCATIONS:
            if Path(brew).is_file():
                candidates.append(
                    InstallerCandidate(path=brew, installer_type=InstallMethod.BREW)
                )
                break

    return candidates
