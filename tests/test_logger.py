"""Tests for logger.py -- setup_logging() and JsonFormatter.

logging.basicConfig is patched because pytest's log capture plugin keeps
handlers on the root logger, which turns real basicConfig calls into no-ops.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from folder_publisher.logger import (
    DEFAULT_MCP_LOG_FILE,
    JsonFormatter,
    setup_logging,
)

BASIC_CONFIG = "folder_publisher.logger.logging.basicConfig"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)


def _close_file_handlers(handlers):
    for handler in handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()


def _record(msg, *args, level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="folder_publisher.sync.engine",
        level=level,
        pathname="engine.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------


class TestLevels:
    """Level resolution: debug flag > LOG_LEVEL > config level > WARNING."""

    @patch(BASIC_CONFIG)
    def test_default_is_warning(self, mock_basic):
        setup_logging(mode="cli")
        assert mock_basic.call_args.kwargs["level"] == logging.WARNING

    @patch(BASIC_CONFIG)
    def test_config_level_used(self, mock_basic):
        setup_logging(mode="cli", level="info")
        assert mock_basic.call_args.kwargs["level"] == logging.INFO

    @patch(BASIC_CONFIG)
    def test_env_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", level="INFO")
        assert mock_basic.call_args.kwargs["level"] == logging.ERROR

    @patch(BASIC_CONFIG)
    def test_debug_beats_everything(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="mcp", debug=True, level="CRITICAL", log_file="x.log")
        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG

    @patch(BASIC_CONFIG)
    def test_unknown_level_falls_back(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        setup_logging(mode="cli")
        assert mock_basic.call_args.kwargs["level"] == logging.WARNING


# ---------------------------------------------------------------------------
# Handlers per mode
# ---------------------------------------------------------------------------


class TestModes:
    @patch(BASIC_CONFIG)
    def test_cli_logs_to_stderr_only(self, mock_basic):
        setup_logging(mode="cli")

        handlers = mock_basic.call_args.kwargs["handlers"]
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr

    @patch(BASIC_CONFIG)
    def test_cli_log_file_adds_named_handler(self, mock_basic, tmp_path):
        log_file = tmp_path / "extract.log"
        setup_logging(mode="cli", log_file=str(log_file))

        handlers = mock_basic.call_args.kwargs["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        try:
            assert len(handlers) == 2
            assert len(file_handlers) == 1
            assert "%(name)s" in file_handlers[0].formatter._fmt
        finally:
            _close_file_handlers(handlers)

    @patch(BASIC_CONFIG)
    def test_json_format_on_every_handler(self, mock_basic, tmp_path):
        setup_logging(
            mode="cli", log_file=str(tmp_path / "x.log"), debug_format="json"
        )

        handlers = mock_basic.call_args.kwargs["handlers"]
        try:
            assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)
        finally:
            _close_file_handlers(handlers)

    @patch(BASIC_CONFIG)
    def test_mcp_never_uses_stdout(self, mock_basic, tmp_path):
        log_file = str(tmp_path / "mcp.log")
        setup_logging(mode="mcp", log_file=log_file)

        kwargs = mock_basic.call_args.kwargs
        assert kwargs["filename"] == log_file
        assert kwargs["filemode"] == "a"
        assert "handlers" not in kwargs

    @patch(BASIC_CONFIG)
    def test_mcp_default_log_file(self, mock_basic):
        setup_logging(mode="mcp")

        assert mock_basic.call_args.kwargs["filename"] == DEFAULT_MCP_LOG_FILE
        assert DEFAULT_MCP_LOG_FILE == "/tmp/folder-publisher.log"

    @patch(BASIC_CONFIG)
    def test_mcp_log_file_from_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_FILE", "/var/tmp/fp.log")
        setup_logging(mode="mcp")
        assert mock_basic.call_args.kwargs["filename"] == "/var/tmp/fp.log"


# ---------------------------------------------------------------------------
# Third-party loggers
# ---------------------------------------------------------------------------


class TestThirdPartySilencing:
    @patch(BASIC_CONFIG)
    def test_silenced_below_debug(self, _mock_basic):
        logging.getLogger("charset_normalizer").setLevel(logging.NOTSET)
        logging.getLogger("mcp").setLevel(logging.NOTSET)

        setup_logging(mode="cli", level="INFO")

        assert logging.getLogger("charset_normalizer").level == logging.WARNING
        assert logging.getLogger("mcp").level == logging.WARNING

    @patch(BASIC_CONFIG)
    def test_left_alone_in_debug(self, _mock_basic):
        logging.getLogger("charset_normalizer").setLevel(logging.NOTSET)

        setup_logging(mode="cli", debug=True)

        assert logging.getLogger("charset_normalizer").level == logging.NOTSET


# ---------------------------------------------------------------------------
# JsonFormatter
# ---------------------------------------------------------------------------


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_fields(self):
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")

        data = json.loads(formatter.format(_record("Extracted %d files", 3)))

        assert set(data) == {"ts", "level", "logger", "msg"}
        assert data["level"] == "INFO"
        assert data["logger"] == "folder_publisher.sync.engine"
        assert data["msg"] == "Extracted 3 files"

    def test_exception_included_on_one_line(self):
        formatter = JsonFormatter()
        try:
            raise PermissionError("data/a.json is read-only")
        except PermissionError:
            exc_info = sys.exc_info()

        output = formatter.format(
            _record("copy failed", level=logging.ERROR, exc_info=exc_info)
        )

        assert "\n" not in output
        data = json.loads(output)
        assert "PermissionError" in data["exc"]
        assert "read-only" in data["exc"]
