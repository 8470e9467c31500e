"""Logging setup: one stdout handler, JSON lines tagged with the request id."""

import json
import logging
import sys
from datetime import datetime, timezone

from .request_id import current_request_id

# Keys the request middleware attaches through ``extra=``
REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms")

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "botocore", "urllib3")


class RequestIDFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        return True


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in REQUEST_FIELDS if hasattr(record, key)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Replace root handlers with a single stdout handler.

    Args:
        level: Root log level name
        json_format: JSON lines when True, plain text with the request id otherwise
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(
        JSONFormatter() if json_format
        else logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
