"""Logging setup for the CLI and the MCP server.

The CLI logs to stderr (stdout carries the report) and optionally to a
file.  The MCP server speaks JSON-RPC on stdout, so it only ever logs to
a file.
"""

import json
import logging
import os
import sys

DEFAULT_MCP_LOG_FILE = "/tmp/folder-publisher.log"
DEFAULT_LEVEL = "WARNING"

_DATEFMT = "%Y-%m-%d %H:%M:%S"
_STDERR_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"

# Chatty below WARNING: encoding detection and the MCP session layer
_QUIET_LOGGERS = ("charset_normalizer", "mcp")


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object on a single line.

    Keys are ``ts``, ``level``, ``logger`` and ``msg``, plus ``exc`` with
    the formatted traceback when the record carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = dict(
            ts=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            msg=record.getMessage(),
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(debug: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    name = os.getenv("LOG_LEVEL") or level or DEFAULT_LEVEL
    resolved = logging.getLevelName(name.upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def _formatter(debug_format: str, fmt: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    return logging.Formatter(fmt, datefmt=_DATEFMT)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure the root logger for *mode* ("cli" or "mcp").

    Level precedence: *debug* (forces DEBUG), then the ``LOG_LEVEL``
    environment variable, then *level* (from the config file), then
    WARNING.  Unknown level names fall back to WARNING.

    Args:
        mode: "cli" logs to stderr (plus *log_file* when given);
            "mcp" logs to *log_file*, ``LOG_FILE`` or DEFAULT_MCP_LOG_FILE.
        debug: Force DEBUG level.
        log_file: Log file path.
        debug_format: "text" or "json" (CLI handlers only).
        level: Level name from the ``logging`` config section.
    """
    log_level = _resolve_level(debug, level)

    if mode == "mcp":
        logging.basicConfig(
            level=log_level,
            format=_STDERR_FORMAT,
            datefmt=_DATEFMT,
            filename=log_file or os.getenv("LOG_FILE", DEFAULT_MCP_LOG_FILE),
            filemode="a",
        )
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_formatter(debug_format, _STDERR_FORMAT))
        handlers: list[logging.Handler] = [console]
        if log_file:
            to_file = logging.FileHandler(log_file, mode="a")
            to_file.setFormatter(_formatter(debug_format, _FILE_FORMAT))
            handlers.append(to_file)
        logging.basicConfig(level=log_level, handlers=handlers)

    if log_level > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
