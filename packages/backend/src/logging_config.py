"""JSON log output for the backend service.

One JSON object per line. Every entry has ``timestamp``, ``level``,
``logger``, ``message`` and ``request_id`` (null outside a request). Access
log entries written by the request logger also carry ``method``, ``path``,
``status_code`` and ``duration_ms``.

The service holds JWT, Razorpay, MSG91 and FCM secrets, so any
``name=value`` / ``name: value`` pair with a secret-like name is masked in
messages, details and tracebacks.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import IO, Any

_SECRET_ASSIGNMENT = re.compile(
    r"(?P<name>api.key|anon.key|auth.key|server.key|secret|password|token|credential|authorization)"
    r"\s*[=:]\s*\S+",
    re.IGNORECASE,
)

REDACTED = "[REDACTED]"

# Copied verbatim from ``extra`` when present on the record
_REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms")

# uvicorn loggers routed through the root handler; access lines come from
# RequestLoggerMiddleware instead.
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error")
_UVICORN_ACCESS = "uvicorn.access"


def redact(text: str) -> str:
    return _SECRET_ASSIGNMENT.sub(REDACTED, text)


class JsonFormatter(logging.Formatter):
    """Render a ``LogRecord`` as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }

        entry.update(
            (name, getattr(record, name)) for name in _REQUEST_FIELDS if hasattr(record, name)
        )

        details = getattr(record, "details", None)
        if details:
            entry["details"] = redact(str(details))

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", *, stream: IO[str] | None = None) -> logging.Handler:
    """Send all service and uvicorn logging through one JSON handler.

    Unknown level names fall back to INFO. Calling this again replaces the
    previous handler instead of adding a second one.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    level_no = logging.getLevelName(level.upper())
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    logging.getLogger(_UVICORN_ACCESS).disabled = True

    return handler
