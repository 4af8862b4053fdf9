"""
Logging for the competency engine.

Every record carries the request ID set by RequestIdMiddleware. Engines log
the scoring context they are working on (trainee, milestone, program, case,
cohort) through `extra=`; both formatters lift those keys out so a failed
recalculation can be traced to the exact trainee/milestone pair:

    logger = get_logger(__name__)
    logger.exception("Milestone recompute failed", extra={"user_id": uid, "milestone_id": mid})

Development output appends the context as key=value pairs. Production output
is one JSON object per line with the context under "context".
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Scoring keys lifted into the record context, in display order
CONTEXT_FIELDS = ("user_id", "milestone_id", "program_id", "case_id", "pgy_year", "metric")

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "request_id",
}

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def scoring_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context keys present on the record, skipping None."""
    context = {}
    for key in CONTEXT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS and value is not None
    }


class RequestIdFilter(logging.Filter):
    """Stamp the current request ID ("-" outside a request) on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"  # type: ignore[attr-defined]
        return True


class DevFormatter(logging.Formatter):
    """Single-line output with the scoring context as trailing key=value pairs."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s %(message)s",
            datefmt="%H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_id"):
            record.request_id = "-"  # type: ignore[attr-defined]
        line = super().formatMessage(record)
        pairs = {**scoring_context(record), **_extra_fields(record)}
        if pairs:
            line += " " + " ".join(f"{key}={value}" for key, value in pairs.items())
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            payload["request_id"] = request_id

        context = scoring_context(record)
        if context:
            payload["context"] = context

        # Extras never overwrite the fields above
        for key, value in _extra_fields(record).items():
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(log_level: str = "INFO", *, debug: bool = False, json_output: bool = False) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        debug: force DEBUG regardless of log_level
        json_output: JSON lines instead of the development format
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter() if json_output else DevFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
