"""
Tests for tool detectors and the detector registry.
"""

import pytest

from toolhub.adapters.mock import MockProbe
from toolhub.adapters.shell.platform import which_command
from toolhub.core.detectors import (
    ClaudeCodeDetector,
    CodexDetector,
    DetectorRegistry,
    GeminiCliDetector,
)
from toolhub.core.models import InstallMethod


class TestCommandToolDetector:
    @pytest.mark.asyncio
    async def test_installed_and_version(self):
        probe = MockProbe()
        probe.set_output("codex --version", "codex-cli 0.65.0")
        detector = CodexDetector()

        assert await detector.is_installed(probe)
        assert await detector.get_version(probe) == "0.65.0"

    @pytest.mark.asyncio
    async def test_not_installed(self):
        probe = MockProbe()
        detector = GeminiCliDetector()
        assert not await detector.is_installed(probe)
        assert await detector.get_version(probe) is None
        assert await detector.get_install_path(probe) is None
        assert await detector.detect_install_method(probe) is None

    @pytest.mark.asyncio
    async def test_install_path_first_line(self):
        probe = MockProbe()
        probe.set_output(which_command("gemini"), "/usr/local/bin/gemini\n/usr/bin/gemini")
        assert await GeminiCliDetector().get_install_path(probe) == "/usr/local/bin/gemini"

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/home/dev/.npm-global/bin/codex", InstallMethod.NPM),
            ("/usr/lib/node_modules/@openai/codex/bin/codex.js", InstallMethod.NPM),
            ("/opt/homebrew/bin/codex", InstallMethod.BREW),
            ("/usr/local/Cellar/codex/0.65.0/bin/codex", InstallMethod.BREW),
            ("/opt/tools/codex", InstallMethod.OTHER),
        ],
    )
    def test_classify_path(self, path, expected):
        assert CodexDetector().classify_path(path) is expected

    def test_claude_official_locations(self):
        detector = ClaudeCodeDetector()
        assert detector.classify_path("/home/dev/.claude/local/claude") is InstallMethod.OFFICIAL
        # Other tools do not claim claude's directories
        assert CodexDetector().classify_path("/home/dev/.claude/local/codex") is InstallMethod.OTHER

    def test_identity(self):
        d = ClaudeCodeDetector()
        assert d.tool_id == "claude-code"
        assert d.tool_name == "Claude Code"
        assert "claude-code" in repr(d)


class TestDetectorRegistry:
    def test_default(self):
        reg = DetectorRegistry.default()
        assert reg.list_ids() == ["claude-code", "codex", "gemini-cli"]
        assert len(reg) == 3
        assert "codex" in reg

    def test_get_and_unregister(self):
        reg = DetectorRegistry.default()
        assert isinstance(reg.get("codex"), CodexDetector)
        reg.unregister("codex")
        assert reg.get("codex") is None
        assert [d.tool_id for d in reg.all_detectors()] == ["claude-code", "gemini-cli"]

    def test_register_overwrites(self):
        reg = DetectorRegistry([CodexDetector()])
        replacement = CodexDetector()
        reg.register(replacement)
        assert reg.get("codex") is replacement
        assert len(reg) == 1
