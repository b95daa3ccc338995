"""Structured JSON logging configuration."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Extra fields that must never reach a log sink verbatim
SENSITIVE_FIELDS = frozenset({"secret", "secret_key", "session_id", "sessionId", "cookie", "authorization"})
REDACTED = "[redacted]"


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key in entry:
                continue
            entry[key] = REDACTED if key in SENSITIVE_FIELDS else value

        return json.dumps(entry, default=str)


def setup_structured_logging(level: int | str = logging.INFO) -> None:
    """Route the root logger (and uvicorn's access log) through JSONFormatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    # Same format for access lines, warnings and up only
    access = logging.getLogger("uvicorn.access")
    access.handlers = [handler]
    access.setLevel(logging.WARNING)
