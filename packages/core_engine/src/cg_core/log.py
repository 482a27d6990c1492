"""
Logging setup for the generator
Console or JSON output, with the table being generated attached to each record
"""
from __future__ import annotations

import json
import logging
import sys
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator

# Thread-local storage for the table a worker is generating
_thread_local = threading.local()

LEVELS = ["WARNING", "INFO", "DEBUG"]


class StructuredFormatter(logging.Formatter):
    """JSON log formatter, one object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        table = getattr(_thread_local, "table", None)
        if table:
            log_entry["table"] = table

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter"""

    def format(self, record: logging.LogRecord) -> str:
        table = getattr(_thread_local, "table", None)
        prefix = f"[{table}] " if table else ""
        formatted = f"{record.levelname:8s} | {record.name:24s} | {prefix}{record.getMessage()}"
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


def level_for_verbosity(verbosity: int) -> str:
    return LEVELS[max(0, min(verbosity, len(LEVELS) - 1))]


def setup_logging(level: str = "WARNING", json_format: bool = False) -> None:
    """
    Configure the root logger

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON lines instead of console text

    Records go to stderr so command output on stdout stays parseable.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(handler)


@contextmanager
def table_context(table: str) -> Generator[None, None, None]:
    """
    Attach ``table`` to every record logged by this thread inside the block

    Usage:
        with table_context("Customer"):
            logger.info("Resolving keys")
    """
    previous = getattr(_thread_local, "table", None)
    _thread_local.table = table
    try:
        yield
    finally:
        if previous:
            _thread_local.table = previous
        else:
            del _thread_local.table
