"""
Structured logging with correlation IDs.

Every log line emitted while a request (or a script run) is active carries
the correlation ID stored in ``correlation_id_var``. Batch jobs such as the
ratings recalculation and the opening-line backfill set their own run ID so
that all per-game log lines of one run can be grouped together.
"""
import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Optional

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Attributes present on every LogRecord; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get(),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str)


class ColoredFormatter(logging.Formatter):
    """Human-readable console output for local runs and scripts."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        line = f"{color}[{record.levelname}]{self.RESET} {record.name}: {record.getMessage()}"

        correlation_id = correlation_id_var.get()
        if correlation_id:
            line += f" | correlation_id={correlation_id}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    handler: Optional[logging.Handler] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines when True, colored console output otherwise
        handler: Optional handler; defaults to a stdout StreamHandler
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)

    handler.setFormatter(JSONFormatter() if json_output else ColoredFormatter())
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (normally the caller's ``__name__``)."""
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> Token:
    """Bind a correlation ID to the current context; returns the reset token."""
    return correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    return correlation_id_var.get()


def clear_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)


def new_run_id() -> str:
    """Generate an identifier for one batch run (recalculation or backfill)."""
    return str(uuid.uuid4())
