"""
Tests for CLI commands — wired to a registry backed by fakes.
"""

import json

import pytest
from click.testing import CliRunner

from conftest import install_tool
from toolhub import __version__
from toolhub.main import cli


def _invoke(registry, *args):
    return CliRunner().invoke(cli, list(args), obj={"registry": registry})


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "toolhub" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bad_config_exits_1(self, tmp_path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "missing.yml"), "status"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_config_file_used(self, tmp_path):
        config = tmp_path / "toolhub.yml"
        config.write_text(f"data_dir: {tmp_path / 'data'}\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "list", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"claude-code": [], "codex": [], "gemini-cli": []}
        assert (tmp_path / "data" / "tool_instances.json").is_file()


class TestStatusCommand:
    def test_empty_store_json(self, registry):
        result = _invoke(registry, "status", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [s["id"] for s in data] == ["claude-code", "codex", "gemini-cli"]
        assert not any(s["installed"] for s in data)

    def test_refresh(self, registry, probe):
        install_tool(probe, "codex", "0.65.0", "/opt/tools/codex")
        result = _invoke(registry, "status", "--refresh")
        assert result.exit_code == 0
        assert "CodeX" in result.output
        assert "0.65.0" in result.output


class TestDetectCommands:
    def test_detect_all(self, registry, probe, store):
        install_tool(probe, "gemini-cli", "0.13.0", "/opt/tools/gemini")
        result = _invoke(registry, "detect", "--json")
        assert result.exit_code == 0
        data = {s["id"]: s for s in json.loads(result.output)}
        assert data["gemini-cli"]["installed"] is True
        assert len(store.get_local_instances()) == 3

    def test_detect_single_unknown_tool(self, registry):
        result = _invoke(registry, "detect", "nope")
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_refresh_no_tools(self, registry):
        result = _invoke(registry, "refresh")
        assert result.exit_code == 0
        assert "No tools installed" in result.output

    def test_versions_empty(self, registry):
        result = _invoke(registry, "versions")
        assert result.exit_code == 0
        assert "toolhub detect" in result.output


class TestManualCommands:
    def test_validate_missing(self, registry):
        result = _invoke(registry, "validate", "/bin/nonexistent")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_add_missing_path(self, registry, store):
        result = _invoke(registry, "add", "codex", "/bin/nonexistent", "--method", "other")
        assert result.exit_code == 1
        assert store.get_all_instances() == []

    def test_add_ssh_then_delete(self, registry, store):
        result = _invoke(registry, "add-ssh", "codex", "--host", "box", "--user", "dev")
        assert result.exit_code == 0
        assert "codex-ssh-dev@box-22" in result.output

        result = _invoke(registry, "delete", "codex-ssh-dev@box-22")
        assert result.exit_code == 0
        assert store.get_all_instances() == []

    def test_add_wsl(self, registry):
        result = _invoke(registry, "add-wsl", "claude-code", "Ubuntu")
        assert result.exit_code == 0
        assert "claude-code-wsl-Ubuntu" in result.output

    def test_scan_nothing(self, registry):
        result = _invoke(registry, "scan", "codex", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == []


class TestUpdateCommands:
    @pytest.fixture
    def instance_id(self, registry, probe):
        import asyncio

        install_tool(probe, "codex", "0.60.0", "/opt/tools/codex")
        inst = asyncio.run(registry.detect_and_persist_single("codex"))
        return inst.instance_id

    def test_update(self, registry, instance_id, store):
        result = _invoke(registry, "update", instance_id, "--force")
        assert result.exit_code == 0
        assert "9.9.9" in result.output
        assert store.get_instance(instance_id).version == "9.9.9"

    def test_check_update_probe_failure(self, registry, instance_id):
        result = _invoke(registry, "check-update", instance_id)
        assert result.exit_code == 1
        assert "Could not read version" in result.output

    def test_update_missing_instance(self, registry):
        result = _invoke(registry, "update", "ghost")
        assert result.exit_code == 1
