"""
Tests for logging configuration.
"""

import logging
from pathlib import Path

import pytest

from devenv_installer.core.observability.logging_config import (
    _parse_level,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    logging.getLogger("werkzeug").setLevel(logging.NOTSET)
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("werkzeug").setLevel(logging.NOTSET)


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("loud") == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_quiets_werkzeug(self):
        setup_logging("INFO")
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_debug_keeps_werkzeug(self):
        setup_logging("DEBUG")
        assert logging.getLogger("werkzeug").level == logging.NOTSET

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "devenv.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG

        logging.getLogger("devenv_installer.test").debug("written to file only")
        for h in root.handlers:
            h.flush()
        assert "written to file only" in log_file.read_text()

    def test_file_from_environment(self, tmp_path: Path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("DEVENV_LOG_FILE", str(log_file))
        monkeypatch.setenv("DEVENV_LOG_FILE_LEVEL", "INFO")
        setup_logging("ERROR")

        logging.getLogger("devenv_installer.test").info("from env")
        for h in logging.getLogger().handlers:
            h.flush()
        assert "from env" in log_file.read_text()


class TestResolveLevel:
    def test_flags_win(self, monkeypatch):
        monkeypatch.setenv("DEVENV_LOG_LEVEL", "ERROR")
        assert resolve_level(debug=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("DEVENV_LOG_LEVEL", "INFO")
        assert resolve_level() == "INFO"
        monkeypatch.delenv("DEVENV_LOG_LEVEL")
        assert resolve_level() == "WARNING"
