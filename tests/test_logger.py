"""Tests for logger.py -- setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from hubdb_sync.logger import JsonFormatter, setup_logging


class TestSetupLogging:
    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic):
        setup_logging()

        kwargs = mock_basic.call_args[1]
        handlers = kwargs["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr
        assert kwargs["level"] == logging.INFO

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(debug=True)

        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_env_level_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level="DEBUG")

        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_config_level_used(self, mock_basic):
        setup_logging(level="warning")

        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_invalid_level_falls_back_to_info(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        setup_logging()

        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_log_file_adds_handler(self, mock_basic, tmp_path):
        log_file = tmp_path / "sync.log"
        setup_logging(log_file=str(log_file))

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 2
        assert isinstance(handlers[1], logging.FileHandler)
        handlers[1].close()

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_log_file_from_env(self, mock_basic, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "env.log"))
        setup_logging()

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 2
        handlers[1].close()

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_json_format(self, mock_basic):
        setup_logging(log_format="json")

        handler = mock_basic.call_args[1]["handlers"][0]
        assert isinstance(handler.formatter, JsonFormatter)

    @patch("hubdb_sync.logger.logging.basicConfig")
    def test_third_party_silenced(self, mock_basic):
        setup_logging()

        assert logging.getLogger("urllib3").level == logging.WARNING


class TestJsonFormatter:
    def _record(self, msg="hello %s", args=("world",), exc_info=None):
        return logging.LogRecord(
            name="hubdb_sync.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg=msg,
            args=args,
            exc_info=exc_info,
        )

    def test_fields(self):
        entry = json.loads(JsonFormatter().format(self._record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "hubdb_sync.test"
        assert entry["msg"] == "hello world"
        assert "ts" in entry
        assert "exc" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            exc_info = sys.exc_info()

        entry = json.loads(JsonFormatter().format(self._record(exc_info=exc_info)))

        assert "kaboom" in entry["exc"]
