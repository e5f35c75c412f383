"""
Tests for configuration loading — toolhub.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from toolhub.core.config.loader import (
    ConfigError,
    Settings,
    find_settings_file,
    load_settings,
)


@pytest.fixture
def settings_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        toolhub:
          data_dir: {data_dir}
          probe_timeout: 5
          status_cache_ttl: 0
          mirror_url: null
    """).format(data_dir=tmp_path / "data")
    path = tmp_path / "toolhub.yml"
    path.write_text(content)
    return path


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("TOOLHUB_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")

        settings = load_settings()
        assert settings.probe_timeout == 30.0
        assert settings.registry_url == "https://registry.npmjs.org"

    def test_load_wrapped(self, settings_yml: Path, tmp_path: Path):
        settings = load_settings(settings_yml)
        assert settings.data_dir == tmp_path / "data"
        assert settings.probe_timeout == 5
        assert settings.status_cache_ttl == 0
        assert settings.mirror_url is None
        assert settings.store_path == tmp_path / "data" / "tool_instances.json"

    def test_load_flat(self, tmp_path: Path):
        path = tmp_path / "toolhub.yml"
        path.write_text("version_check_timeout: 3\n")
        assert load_settings(path).version_check_timeout == 3

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "toolhub.yml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "toolhub.yml"
        path.write_text("toolhub: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "toolhub.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "toolhub.yml"
        path.write_text("probe_timeout: -1\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path)


class TestFindSettingsFile:
    def test_env_var_wins(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("TOOLHUB_CONFIG", str(tmp_path / "custom.yml"))
        assert find_settings_file(tmp_path) == tmp_path / "custom.yml"

    def test_walks_up(self, settings_yml: Path, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("TOOLHUB_CONFIG", raising=False)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == settings_yml.resolve()
