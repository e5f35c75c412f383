"""
Platform helpers — path lookup command and the enhanced PATH.

GUI launchers and service managers often start processes with a minimal
PATH that misses npm globals, Homebrew, nvm and friends. Probes run with
these well-known locations prepended so detection matches what the user
sees in an interactive shell.
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path


def is_windows() -> bool:
    return sys.platform.startswith("win")


def which_command(name: str) -> str:
    """The platform's path-lookup command for an executable."""
    return f"where {name}" if is_windows() else f"which {name}"


def _nvm_bin(home: Path) -> Path | None:
    nvm_dir = os.environ.get("NVM_DIR")
    candidates = []
    if nvm_dir:
        candidates.append(Path(nvm_dir) / "current" / "bin")
    candidates += [
        home / ".nvm" / "current" / "bin",
        home / ".nvm" / "versions" / "node" / "default" / "bin",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate

    versions_dir = home / ".nvm" / "versions" / "node"
    if versions_dir.is_dir():
        versions = sorted(p.name for p in versions_dir.iterdir() if p.is_dir())
        if versions:
            latest = versions_dir / versions[-1] / "bin"
            if latest.exists():
                return latest
    return None


def unix_extra_paths(home: Path | None = None) -> list[str]:
    """Well-known tool directories on macOS / Linux, highest priority first."""
    home = home or Path.home()
    front: list[str] = []

    volta = Path(os.environ.get("VOLTA_HOME", home / ".volta")) / "bin"
    if volta.exists():
        front.append(str(volta))
    asdf = Path(os.environ.get("ASDF_DIR", home / ".asdf")) / "shims"
    if asdf.exists():
        front.append(str(asdf))

    npm_prefix = os.environ.get("NPM_CONFIG_PREFIX")
    if npm_prefix:
        front.append(f"{npm_prefix}/bin")

    nvm = _nvm_bin(home)
    if nvm:
        front.append(str(nvm))

    front += [
        str(home / ".claude" / "local"),
        str(home / ".claude" / "bin"),
        str(home / ".local" / "bin"),
    ]
    paths = front + [
        "/opt/homebrew/bin",
        "/usr/local/bin",
        "/home/linuxbrew/.linuxbrew/bin",
        "/usr/bin",
        "/bin",
        "/usr/sbin",
        "/sbin",
    ]
    if not npm_prefix:
        paths.append(str(home / ".npm-global" / "bin"))
    return paths


def windows_extra_paths() -> list[str]:
    paths = [r"C:\Program Files\nodejs", r"C:\Program Files (x86)\nodejs"]
    appdata = os.environ.get("APPDATA")
    if appdata:
        paths.append(rf"{appdata}\npm")
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        paths.append(rf"{local_app_data}\Programs\claude-code")
    profile = os.environ.get("USERPROFILE")
    if profile:
        paths.append(rf"{profile}\.claude\bin")
        paths.append(rf"{profile}\.local\bin")
    return paths


def extra_paths() -> list[str]:
    return windows_extra_paths() if is_windows() else unix_extra_paths()


def build_enhanced_path(current: str | None = None) -> str:
    """Well-known tool directories followed by the inherited PATH."""
    if current is None:
        current = os.environ.get("PATH", "")
    parts = extra_paths()
    if current:
        parts.append(current)
    return os.pathsep.join(parts)


def search_dirs() -> list[Path]:
    """Unique directories of the enhanced PATH, in lookup order."""
    seen: set[str] = set()
    dirs: list[Path] = []
    for entry in build_enhanced_path().split(os.pathsep):
        if entry and entry not in seen:
            seen.add(entry)
            dirs.append(Path(entry))
    return dirs


def version_command(path: str) -> str:
    """``<path> --version``, quoting the path when it needs it."""
    if is_windows():
        quoted = f'"{path}"' if " " in path else path
    else:
        quoted = shlex.quote(path)
    return f"{quoted} --version"
