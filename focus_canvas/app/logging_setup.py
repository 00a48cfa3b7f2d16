"""Logging setup for the focus-canvas host."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path


ROOT_LOGGER_NAME = "focus_canvas"


def setup_logging(log_level: str | int = logging.INFO, log_file: str | Path | None = None) -> logging.Logger:
    """Install console and optional JSON-lines file handlers on the package logger.

    Calling it again replaces the handlers, so the host can reconfigure after
    CLI overrides.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)
        # The file handler wants DEBUG records even when the console is quieter.
        logger.setLevel(logging.DEBUG)

    logger.propagate = False
    logger.debug("Logging initialized at %s", logging.getLevelName(console_handler.level))
    return logger


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured log files."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)
        return json.dumps(entry)
