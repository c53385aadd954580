"""Tests for setup_logging."""

import logging

from gesturelib import setup_logging


class TestSetupLogging:
    def test_console_level(self, monkeypatch):
        monkeypatch.delenv("GESTURELIB_LOG_LEVEL", raising=False)
        logger = setup_logging("WARNING")
        assert logger.name == "gesturelib"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_env_level_wins(self, monkeypatch):
        monkeypatch.setenv("GESTURELIB_LOG_LEVEL", "DEBUG")
        assert setup_logging("ERROR").level == logging.DEBUG

    def test_file_handler_captures_debug(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GESTURELIB_LOG_LEVEL", raising=False)
        log_file = tmp_path / "gesturelib.log"
        logger = setup_logging("INFO", log_file=log_file)
        logging.getLogger("gesturelib.pipeline").debug("stage detail")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        assert "stage detail" in log_file.read_text()
