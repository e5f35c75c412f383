"""
Version strings — extract and compare versions from ``--version`` output.

Tools print their version in many shapes::

    2.0.61 (Claude Code)
    codex-cli 0.65.0
    v0.13.0-preview.2

``parse_version_string`` normalises all of them to ``X.Y.Z[-pre]``.
"""

from __future__ import annotations

import re

_SEMVER = re.compile(r"v?(\d+\.\d+\.\d+(?:-[\w.]+)?)")
_PRE_SPLIT = re.compile(r"[.\-]")


def parse_version_string(raw: str) -> str:
    """Extract a version from raw command output.

    Falls back to the text before a parenthesis, then the first token
    starting with a digit, then the trimmed input without a ``v`` prefix.
    """
    trimmed = raw.strip()

    match = _SEMVER.search(trimmed)
    if match:
        return match.group(1)

    if "(" in trimmed:
        before = trimmed.split("(", 1)[0].strip()
        if before:
            return before

    parts = trimmed.split()
    if len(parts) > 1:
        for part in parts:
            if part[:1].isdigit():
                return part.lstrip("v")

    return trimmed.lstrip("v")


def _key(version: str) -> tuple[tuple[int, ...], tuple]:
    core, _, pre = parse_version_string(version).partition("-")
    numbers = []
    for piece in core.split("."):
        digits = re.match(r"\d+", piece)
        numbers.append(int(digits.group()) if digits else 0)
    while len(numbers) < 3:
        numbers.append(0)

    if not pre:
        # A release sorts after every pre-release of the same core.
        return tuple(numbers), (1,)
    pre_key = tuple(
        (0, int(p), "") if p.isdigit() else (1, 0, p)
        for p in _PRE_SPLIT.split(pre) if p
    )
    return tuple(numbers), (0, pre_key)


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``."""
    ka, kb = _key(a), _key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def is_newer(candidate: str | None, current: str | None) -> bool:
    """Whether ``candidate`` is a strictly newer version than ``current``."""
    if not candidate or not current:
        return False
    return compare_versions(candidate, current) > 0
