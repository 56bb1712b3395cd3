"""Observability — structured log records and per-request access logging.

Invariants:
    - Every record carries timestamp, level, logger and message
    - Known context keys passed via extra= (collection_id, entity_id, duration_ms, ...)
      are copied into the JSON record; unknown keys are ignored
    - setup_logging is idempotent: calling it again swaps the handler instead of
      stacking a second one
    - Access log lines never include request bodies or the Authorization header

Design Decisions:
    - stdlib logging with a JSON formatter, no logging framework
    - LOG_FORMAT=text gives single-line human output for local runs and tests
"""

import json
import logging
import time
from datetime import datetime, timezone

from fastapi import Request

_CONTEXT_KEYS = (
    "session_id", "collection_id", "entity_id", "error_code",
    "method", "path", "status", "duration_ms", "action_count",
)

_installed: logging.Handler | None = None
access_logger = logging.getLogger("crate_api.access")


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in _CONTEXT_KEYS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the root handler for the chosen format and return it."""
    global _installed
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )
    root = logging.getLogger()
    if _installed is not None:
        root.removeHandler(_installed)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _installed = handler
    return handler


async def log_requests(request: Request, call_next):
    """HTTP middleware: one access log line per request, with its duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
    access_logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    return response
