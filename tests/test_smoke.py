"""
Smoke tests — verify the bootstrap is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- Every registry command is registered
"""

from click.testing import CliRunner

from toolhub import __version__
from toolhub.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        assert __version__
        assert isinstance(__version__, str)

    def test_commands_registered(self):
        expected = {
            "status", "list", "detect", "refresh", "versions", "scan", "validate",
            "add", "add-wsl", "add-ssh", "delete", "update", "check-update",
        }
        assert expected <= set(cli.commands)

    def test_each_command_has_help(self):
        runner = CliRunner()
        for name in cli.commands:
            result = runner.invoke(cli, [name, "--help"])
            assert result.exit_code == 0, name
