"""
Logging configuration — central setup for the CLI entrypoint.

Called once per CLI invocation via configure_cli_logging().  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    CLI flag  >  TOOLHUB_LOG_LEVEL env var  >  WARNING (default)

Optional file output via TOOLHUB_LOG_FILE / TOOLHUB_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LEVEL_ENV_VAR = "TOOLHUB_LOG_LEVEL"
FILE_ENV_VAR = "TOOLHUB_LOG_FILE"
FILE_LEVEL_ENV_VAR = "TOOLHUB_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

# (highest level it applies to, format, datefmt), checked in order.
# --debug adds file:line, --verbose adds time and module.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

# File output — always full detail
_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# asyncio logs slow callbacks and selector details at DEBUG/INFO
_NOISY_LOGGERS = ("asyncio",)


def console_format(numeric_level: int) -> tuple[str, str | None]:
    """Console ``(format, datefmt)`` for a numeric level."""
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if numeric_level <= threshold:
            return fmt, datefmt
    return _CONSOLE_FORMATS[-1][1], _CONSOLE_FORMATS[-1][2]


def _file_handler(log_file: str, level: int) -> logging.FileHandler:
    """File handler at ``level``; the log directory is created if missing."""
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers with a stderr handler (and a file).

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file; defaults to ``level``.
        quiet_third_party: Hold asyncio's logger at WARNING above DEBUG.
    """
    numeric_level = _parse_level(level)
    fmt, datefmt = console_format(numeric_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handlers: list[logging.Handler] = [console]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # Root level = most verbose handler level
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level from CLI flags, falling back to ``TOOLHUB_LOG_LEVEL``."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV_VAR, "WARNING")


def configure_cli_logging(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Set up logging for one CLI invocation.

    Returns:
        The resolved console level name.
    """
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet)
    setup_logging(
        level=level,
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
        quiet_third_party=not debug,
    )
    return level
