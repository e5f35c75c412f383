"""
Configuration loader — reads toolhub.yml into a Settings model.

Settings are optional: with no file every field has a working default.
The file is searched in this order:

    1. explicit ``--config`` path
    2. ``TOOLHUB_CONFIG`` environment variable
    3. ``toolhub.yml`` in the current directory or any parent
    4. ``~/.toolhub/config.yml``
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from toolhub.core.persistence.instance_store import DEFAULT_STORE_FILE

logger = logging.getLogger(__name__)

SETTINGS_FILE = "toolhub.yml"
CONFIG_ENV_VAR = "TOOLHUB_CONFIG"


def _default_data_dir() -> Path:
    return Path.home() / ".toolhub"


class ConfigError(Exception):
    """Raised when the settings file is invalid or unreadable."""


class Settings(BaseModel):
    """Runtime settings for the registry and its collaborators."""

    data_dir: Path = Field(default_factory=_default_data_dir)
    store_file: str = DEFAULT_STORE_FILE

    probe_timeout: float = Field(default=30.0, gt=0)
    status_cache_ttl: float = Field(default=30.0, ge=0)

    registry_url: str = "https://registry.npmjs.org"
    mirror_url: str | None = "https://registry.npmmirror.com"
    version_check_timeout: float = Field(default=10.0, gt=0)

    @property
    def store_path(self) -> Path:
        return self.data_dir.expanduser() / self.store_file


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Locate the settings file (see module docstring for the order).

    Returns:
        Path to the settings file, or None if there is none.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    current = (start_dir or Path.cwd()).resolve()
    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    home_config = _default_data_dir() / "config.yml"
    if home_config.is_file():
        return home_config
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit settings path. If None, searches (see module doc).

    Returns:
        Validated Settings (defaults when no file exists).

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if path is None:
        path = find_settings_file()

    if path is None:
        logger.debug("No %s found — using default settings", SETTINGS_FILE)
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may wrap everything under a "toolhub" key or be flat
    settings_data = data.get("toolhub", data)

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s (data_dir=%s)", path, settings.data_dir)
    return settings
