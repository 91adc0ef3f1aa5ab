"""Logging configuration."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import settings

LOGGER_NAME = "httpchain"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Attach a handler to the package logger.

    Args:
        level: Log level name, defaults to the configured level
        fmt: "json" or "plain", defaults to the configured format
        handler: Handler to install, defaults to a stderr stream handler

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    handler = handler or logging.StreamHandler()
    if (fmt or settings.log_format) == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel((level or settings.log_level).upper())
    return logger
