"""
Structured JSON logging for Inventauri.

Every record under the ``inventauri`` logger is written as one JSON object
per line::

    {"ts": "2025-05-01T10:00:00.123+00:00", "level": "INFO",
     "logger": "inventauri.services.sale_recorder", "message": "sale_recorded",
     "correlation_id": "...", "tenant_id": "tenant-a", "sale_id": "...",
     "line_count": 2, "duration_ms": 3.1}

Field sources, in order of precedence:
    1. ts / level / logger / message.
    2. Request context from LogContext (correlation_id, tenant_id, sale_id,
       actor_id), set by the sale recorder around each call.
    3. Event fields passed through ``extra``.  Fields whose value is None are
       dropped, so a rejection without a line index carries no line_index.
    4. For a logged exception: exc_type, exc_message, traceback and, for an
       InventauriError, error_code plus its structured attributes as exc_*.

Configuration comes from ``inventauri_config.LoggingSettings`` via
configure_logging_from_settings(); the level there honours
INVENTAURI_LOG_LEVEL.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "LOGGER_NAMESPACE",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "configure_logging_from_settings",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from inventauri.exceptions import InventauriError

LOGGER_NAMESPACE = "inventauri"

CONTEXT_FIELDS = ("correlation_id", "tenant_id", "sale_id", "actor_id")

# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"inventauri_log_{name}", default=None)
    for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _context_vars[name]
    except KeyError:
        raise TypeError(f"unknown log context field: {name!r}") from None


class LogContext:
    """Request-scoped log fields, isolated per thread and per asyncio task."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set context fields.  None values leave the field unchanged."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Return the fields that are currently set."""
        values = {name: var.get() for name, var in _context_vars.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """
        Set fields for the duration of a block.

        Previous values are restored on exit, including when the block raises
        or is cancelled.
        """
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(value)))
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, InventauriError):
        fields["error_code"] = exc.code
        for key, value in vars(exc).items():
            if not key.startswith("_") and value is not None:
                fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES or key in payload or value is None:
                continue
            payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            for key, value in _exception_fields(record.exc_info[1]).items():
                payload.setdefault(key, value)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Loggers and configuration
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the inventauri namespace."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_handler: logging.Handler | None = None
_lock = threading.Lock()


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Send inventauri logs through the JSON formatter.

    The output handler is installed on the first call only.  Every call sets
    the level, so settings can be re-applied without duplicating output.

    Args:
        level: Logging level as an int or a name such as ``"DEBUG"``.
        stream: Stream for the default StreamHandler (stderr when None).
        handler: Handler to install instead of a StreamHandler.
    """
    global _handler
    resolved = _resolve_level(level)
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        namespace_logger.setLevel(resolved)
        namespace_logger.propagate = False
        if _handler is None:
            _handler = handler or logging.StreamHandler(stream or sys.stderr)
            _handler.setFormatter(StructuredFormatter())
            namespace_logger.addHandler(_handler)


def configure_logging_from_settings(
    settings,
    *,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Apply an ``inventauri_config.LoggingSettings``."""
    configure_logging(level=settings.level, stream=stream, handler=handler)


def reset_logging() -> None:
    """Remove the installed handler and restore stdlib defaults. FOR TESTING ONLY."""
    global _handler
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        if _handler is not None:
            namespace_logger.removeHandler(_handler)
            _handler = None
        namespace_logger.setLevel(logging.NOTSET)
        namespace_logger.propagate = True
