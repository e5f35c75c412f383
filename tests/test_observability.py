"""
Tests for observability — logging setup.
"""

import logging

import pytest

from toolhub.core.observability.logging_config import (
    _parse_level,
    configure_cli_logging,
    console_format,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler_lowers_effective_level(self, tmp_path):
        log_file = tmp_path / "toolhub.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("toolhub.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text()
        for h in root.handlers:
            if isinstance(h, logging.FileHandler):
                h.close()

    def test_quiets_third_party(self):
        setup_logging("INFO")
        assert logging.getLogger("asyncio").level == logging.WARNING


class TestConsoleFormat:
    def test_debug_shows_source_line(self):
        fmt, datefmt = console_format(logging.DEBUG)
        assert "%(lineno)d" in fmt
        assert datefmt == "%H:%M:%S"

    def test_info_shows_module(self):
        fmt, _ = console_format(logging.INFO)
        assert "%(name)s" in fmt
        assert "%(lineno)d" not in fmt

    def test_warning_and_above_are_plain(self):
        assert console_format(logging.WARNING) == ("%(message)s", None)
        assert console_format(logging.CRITICAL) == ("%(message)s", None)

    def test_log_file_directory_is_created(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "toolhub.log"
        setup_logging("WARNING", log_file=str(log_file))

        logging.getLogger("toolhub.test").warning("to disk")
        for h in logging.getLogger().handlers:
            h.flush()
            if isinstance(h, logging.FileHandler):
                h.close()
        assert "to disk" in log_file.read_text()


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("LOUD") == logging.WARNING


class TestResolveLevel:
    def test_flags_take_precedence(self, monkeypatch):
        monkeypatch.setenv("TOOLHUB_LOG_LEVEL", "ERROR")
        assert resolve_level(debug=True) == "DEBUG"
        assert resolve_level(verbose=True) == "INFO"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("TOOLHUB_LOG_LEVEL", "INFO")
        assert resolve_level() == "INFO"
        monkeypatch.delenv("TOOLHUB_LOG_LEVEL")
        assert resolve_level() == "WARNING"

    def test_configure_cli_logging(self, monkeypatch):
        monkeypatch.delenv("TOOLHUB_LOG_FILE", raising=False)
        assert configure_cli_logging(quiet=True) == "ERROR"
        assert logging.getLogger().level == logging.ERROR
