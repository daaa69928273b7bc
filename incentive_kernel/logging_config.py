"""
Structured JSON logging for the incentive engine.

Every log line is one JSON object: timestamp, level, logger, the snake_case
event name as ``message``, the run context bound through ``LogContext``
(run, scheme, agent, record) and whatever the caller passed in ``extra=``.

Only the services layer binds context. Engines log plain events and pick
up the agent and run they are working for from the bound context, which
follows per-agent work onto worker threads through
``contextvars.copy_context()``.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import date, datetime, timezone
from typing import Any, Mapping

CONTEXT_FIELDS = ("run_id", "scheme_name", "agent_id", "record_id")

_context: ContextVar[Mapping[str, str]] = ContextVar("incentive_log_context", default={})


class LogContext:
    """Run-scoped log fields, held in a single context variable."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    def bind(**fields: str | None) -> "_BoundContext":
        """
        Context manager adding fields for the duration of a block.

        None values leave the current value in place. Unknown names raise
        ``ValueError`` so a typo never silently drops context.
        """
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context field(s): {sorted(unknown)}")
        return _BoundContext({k: v for k, v in fields.items() if v is not None})


class _BoundContext:

    def __init__(self, fields: dict[str, str]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set({**_context.get(), **self._fields})
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # structured attributes of IncentiveEngineError subclasses
        for key, val in vars(exc).items():
            if not key.startswith("_") and key not in ("args", "code"):
                fields[f"exc_{key}"] = val
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "incentive_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the incentive_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler (stderr unless given) to the package logger. Idempotent."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.setLevel(level)
    package_logger.propagate = False

    handler = handler if handler is not None else logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    package_logger.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``. Tests only."""
    global _configured
    with _lock:
        _configured = False
    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.WARNING)
    package_logger.propagate = True
