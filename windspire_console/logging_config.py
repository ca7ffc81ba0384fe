# windspire_console/logging_config.py
"""
Stderr-only JSON logging configuration.

stdout belongs to command output (tables, summaries, progress), so all
logging goes to stderr.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON line."""
        log_data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(verbosity: str = "normal") -> None:
    """
    Configure logging to output JSON to stderr only.

    Clears existing handlers so repeated CLI invocations in one process
    don't stack handlers.

    Args:
        verbosity: "quiet", "normal", or "verbose"
    """
    level = _LEVELS.get(verbosity, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Request lines from httpx are noise below verbose
    for logger_name in ["httpx", "httpcore"]:
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(level if verbosity == "verbose" else logging.WARNING)
        logger.propagate = False
