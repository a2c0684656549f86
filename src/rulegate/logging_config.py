"""
RuleGate Logging Setup

Every module logs through `logging.getLogger(__name__)`, so all engine
loggers live under the "rulegate" namespace. configure_logging()
attaches one stream handler to that namespace, formatting records as
JSON lines (default) or plain text.

Evaluation code passes structured fields through `extra=`; the JSON
formatter copies the known ones into the log entry.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import get_settings

ROOT_LOGGER = "rulegate"

EXTRA_FIELDS = (
    "set_id",
    "ruleset_id",
    "rule_id",
    "condition",
    "operator",
    "matches",
    "duration_ms",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the "rulegate" logger.

    Args:
        level: Log level name (defaults to RG_LOG_LEVEL)
        fmt: "json" or "text" (defaults to RG_LOG_FORMAT)

    Returns:
        The configured logger. Calling again replaces the handler
        rather than adding a second one.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    fmt = (fmt or settings.log_format).lower()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_rulegate_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._rulegate_handler = True
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
