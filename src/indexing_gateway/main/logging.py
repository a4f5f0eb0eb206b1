"""Logger setup shared by every module.

``get_logger`` hands out a logger with its own handler: one JSON object per
line on stdout (``JSON_LOGS=true``, the default, for log shippers) or a rich
console for local development. JSON lines carry the request context
(correlation id, tenant service account, ...) and the worker thread name, so
the lines of one batch can be grouped back together.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from indexing_gateway.main.config import get_loglevel
from indexing_gateway.main.request_context import get_request_context

JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}

# Libraries that log every request and token exchange at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "google.auth", "google.auth.transport", "urllib3")

# Attributes every LogRecord has; anything else on a record came in via extra={}
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class ContextJSONFormatter(logging.Formatter):
    """Serialize log records with request context into JSON."""

    # Always emitted when set on the record, even if the context has no value
    DEFAULT_KEYS = ("correlation_id", "service_account", "url", "error_code", "status_code")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname.lower(),
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        for key, value in get_request_context().items():
            if value is not None:
                payload.setdefault(key, value)

        payload.update(self._extra_fields(record, payload))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        return json.dumps(payload, default=str)

    def _extra_fields(self, record: logging.LogRecord, payload: dict[str, Any]) -> dict[str, Any]:
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
            and not key.startswith("_")
            and value is not None
            and key not in payload
        }
        for key in self.DEFAULT_KEYS:
            value = getattr(record, key, None)
            if value is not None and key not in payload:
                extras[key] = value
        return extras


def quiet_third_party_loggers(level: int = logging.WARNING) -> None:
    """Cap HTTP and auth library loggers so request bodies and tokens stay out of the logs."""
    if get_loglevel() <= logging.DEBUG:
        level = min(level, logging.INFO)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)


quiet_third_party_loggers()


class SimpleLogger(logging.Logger):
    def __init__(self, name: str = "main", level: int = logging.WARNING):
        super().__init__(name, level)
        self.addHandler(self._build_handler(level))

    @classmethod
    def _build_handler(cls, level: int) -> logging.Handler:
        handler: logging.Handler
        if JSON_LOGS_ENABLED:
            handler = logging.StreamHandler(stream=sys.stdout)
            handler.setFormatter(ContextJSONFormatter())
        else:
            # Rich renders its own layout; markup stays off so URLs print verbatim
            handler = RichHandler(rich_tracebacks=True, markup=False, show_path=True)
        handler.setLevel(level)
        return handler


def get_logger(module_name: str) -> logging.Logger:
    # Not registered with the logging manager; each module gets its own handler
    return SimpleLogger(name=module_name, level=get_loglevel())
