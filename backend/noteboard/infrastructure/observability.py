"""Structured Logging — JSON formatter and root-logger setup.

Invariants:
    - Every JSON line carries timestamp, level, logger and message
    - Connection and request context passed via `extra=` is surfaced when present
    - setup_logging owns exactly one root handler; calling it again replaces it

Design Decisions:
    - Plain logging + a small JSONFormatter: no logging dependency to configure
    - log_format "text" for local development, anything else means JSON
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "connection_id", "signature", "error_code", "path",
    "connections", "reason", "client",
)
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_HANDLER_NAME = "noteboard"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: getattr(record, key)
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _build_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(TEXT_FORMAT) if fmt == "text" else JSONFormatter(),
    )
    return handler


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Install the noteboard handler on the root logger."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(_build_handler(fmt))
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
