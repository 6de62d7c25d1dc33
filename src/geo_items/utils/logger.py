"""
geo_items Logger Module
-------------------------------------------

This module configures a JSON-formatted logger for the geo_items service.
Log records are written as one-line JSON entries with the following core fields:

  - timestamp: ISO-formatted datetime string when the event occurred
  - level:     logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
  - logger:    the name of the logger that emitted the record
  - message:   the formatted log message

Any extra attributes you attach to log calls (via the `extra=` argument)
are automatically included in the JSON payload under their own keys.

Records always go to stdout. When the LOG_FILE setting is present they are also
written to a RotatingFileHandler (10 MB per file, 5 backups).

Usage:

    from geo_items.utils.logger import logger

    logger.info("Indexed item", extra={"operation": "create_item", "item_id": item_id})
    logger.error("Scan failed", exc_info=True)
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from ..config import LOG_FILE, LOG_LEVEL


class JsonFormatter(logging.Formatter):
    builtins = {
        "name", "msg", "args", "levelname", "levelno",
        "pathname", "filename", "module", "exc_info",
        "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread",
        "threadName", "processName", "process", "taskName",
        "message", "asctime"
    }

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        # Pick up any extra attributes
        for key, value in record.__dict__.items():
            if key not in self.builtins:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

# ----------------------------------------------------------------------------------------------------------

def setup_logger(
    name: str,
    level: Union[int, str] = LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = LOG_FILE
) -> logging.Logger:
    """
    Set up a logger with JSON formatting and handlers.

    Calling it twice for the same name does not stack handlers.

    Args:
        name: Name of the logger
        level: Logging level (default: LOG_LEVEL setting)
        log_file: Optional path to a rotating log file (default: LOG_FILE setting)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_path,
            maxBytes=10_000_000,
            backupCount=5
        )
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    return logger

# ----------------------------------------------------------------------------------------------------------

# Package-level logger
logger = setup_logger("geo_items")
