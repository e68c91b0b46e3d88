"""Structured JSON logging for the settlement engine."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "ActorContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any


class ActorContext:
    """Request-scoped log fields (who is acting, on which request)."""

    _actor_id: ContextVar[int | None] = ContextVar("log_actor_id", default=None)
    _actor_role: ContextVar[str | None] = ContextVar("log_actor_role", default=None)
    _request_path: ContextVar[str | None] = ContextVar("log_request_path", default=None)

    _FIELD_NAMES = ("actor_id", "actor_role", "request_path")

    @classmethod
    def set(
        cls,
        *,
        actor_id: int | None = None,
        actor_role: str | None = None,
        request_path: str | None = None,
    ) -> None:
        """Set context fields. Only non-None values are updated."""
        if actor_id is not None:
            cls._actor_id.set(actor_id)
        if actor_role is not None:
            cls._actor_role.set(actor_role)
        if request_path is not None:
            cls._request_path.set(request_path)

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        ctx: dict[str, Any] = {}
        for name in cls._FIELD_NAMES:
            val = getattr(cls, f"_{name}").get()
            if val is not None:
                ctx[name] = val
        return ctx

    @classmethod
    def clear(cls) -> None:
        for name in cls._FIELD_NAMES:
            getattr(cls, f"_{name}").set(None)


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        payload.update(ActorContext.get_all())

        # Structured extra= data
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


_LOGGER_PREFIX = "icebox"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the icebox namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    json_output: bool = True,
    stream: Any = None,
) -> None:
    """
    Configure the icebox logger hierarchy (idempotent).

    With json_output=False no handler is attached and records propagate to
    the root logger (Flask's default handler, pytest's caplog).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)

    if not json_output:
        return

    root_logger.propagate = False
    h = logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
