"""
KPiece Logging Subsystem

Purpose
-------
Structured, context-aware logging for the economy core. Every transaction
runs inside a LogContext so its service, store and notifier records share
one correlation id.

Responsibilities
----------------
- `setup_logging()` / `shutdown_logging()` for the composition root
- Stamp records with session_id, action, correlation_id, request_id,
  component and operation from ContextVars
- Route records through a bounded QueueHandler so the accrual clock never
  waits on handler I/O
- Console output (JSON in production, colored text in development) plus
  an optional daily JSON file (LOG_TO_FILE)

Design Notes
------------
- JSON is the canonical shape; `extra={...}` fields land under "extra"
- Context is attached before enqueueing since the listener thread cannot
  see the caller's ContextVars
- Importing this module configures nothing; tests and library users keep
  plain stdlib propagation
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from kpiece.core.config.config import Config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DAILY_LOG_FILE = "kpiece_daily.json.log"
QUEUE_MAX_SIZE = 10_000

# Fields owned by ContextFilter; "N/A" marks an unset value
CONTEXT_FIELDS = ("session_id", "action", "correlation_id", "request_id", "component", "operation")
MISSING = "N/A"

_context: ContextVar[Dict[str, Any]] = ContextVar("kpiece_log_context", default={})

_listener: Optional[QueueListener] = None
_dropped_records = 0


def _level() -> int:
    name = Config.LOG_LEVEL if isinstance(Config.LOG_LEVEL, str) else "INFO"
    return getattr(logging, name.upper(), logging.INFO)


def _json_output() -> bool:
    if Config.LOG_JSON is None:
        return Config.is_production()
    return bool(Config.LOG_JSON)


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get({})

        correlation_id = context.get("correlation_id") or context.get("request_id") or MISSING
        record.correlation_id = correlation_id
        record.request_id = context.get("request_id") or correlation_id
        record.session_id = context.get("session_id", MISSING)
        record.action = context.get("action", MISSING)
        record.operation = context.get("operation") or MISSING
        record.component = context.get("component") or record.name.partition(".")[0]
        return True


class ColoredFormatter(logging.Formatter):
    RESET = "\033[0m"
    LEVEL_COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[1;91m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        color = self.LEVEL_COLORS.get(record.levelname)
        if not color:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    # Attributes every LogRecord carries; anything else came from `extra`
    _BUILTIN = frozenset(
        vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
        | {"message", "asctime", "taskName"}
    )

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None and value != MISSING:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in self._BUILTIN and key not in CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue Plumbing
# ============================================================================


class DroppingQueueHandler(QueueHandler):
    """Drop records instead of blocking when the queue is full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        global _dropped_records
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _dropped_records += 1
            sys.stderr.write("KPiece logging queue full; dropping log record.\n")


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if _json_output():
        handler.setFormatter(JSONFormatter())
    elif Config.LOG_COLORS and sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler() -> logging.Handler:
    logs_dir = Config.LOGS_DIR.resolve()
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(logs_dir / DAILY_LOG_FILE),
        when="midnight",
        backupCount=1,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(JSONFormatter())
    return handler


# ============================================================================
# Global Setup
# ============================================================================


def setup_logging() -> None:
    """Install the queue-backed root handler. Safe to call twice."""
    global _listener, _dropped_records

    if _listener is not None:
        return

    level = _level()
    handlers: List[logging.Handler] = [_console_handler()]
    if Config.LOG_TO_FILE:
        handlers.append(_file_handler())
    for handler in handlers:
        handler.setLevel(level)

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_MAX_SIZE)
    queue_handler = DroppingQueueHandler(log_queue)
    queue_handler.setLevel(level)
    queue_handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(queue_handler)

    _dropped_records = 0
    _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _listener.start()

    for noisy in ("asyncio", "redis"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT,
            "log_level": logging.getLevelName(level),
            "json": _json_output(),
            "to_file": Config.LOG_TO_FILE,
        },
    )


def shutdown_logging() -> None:
    """Flush the queue, close handlers and detach from the root logger."""
    global _listener

    if _listener is None:
        return

    logging.getLogger(__name__).info(
        "Shutting down logging subsystem", extra={"records_dropped": _dropped_records}
    )
    _listener.stop()
    for handler in _listener.handlers:
        handler.close()
    _listener = None

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


# ============================================================================
# Log Context
# ============================================================================


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


class LogContext:
    """
    Bind context fields for the duration of a block.

    Usage
    -----
    >>> async with LogContext(action="open_chest", component="economy"):
    ...     logger.info("Chest opened")
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        action: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        correlation_id = correlation_id or request_id or _new_correlation_id()
        self.context: Dict[str, Any] = dict(
            extra,
            session_id=session_id or MISSING,
            action=action or MISSING,
            component=component,
            operation=operation,
            correlation_id=correlation_id,
            request_id=request_id or correlation_id,
        )
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(
    session_id: Optional[str] = None,
    action: Optional[str] = None,
    component: Optional[str] = None,
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: Any,
) -> None:
    """Merge fields into the current context without opening a new scope."""
    updates = dict(
        session_id=session_id,
        action=action,
        component=component,
        operation=operation,
        correlation_id=correlation_id,
        request_id=request_id,
    )
    merged = dict(_context.get({}))
    merged.update({key: value for key, value in updates.items() if value is not None})
    if request_id and "correlation_id" not in merged:
        merged["correlation_id"] = request_id
    merged.update(extra)
    _context.set(merged)


def get_log_context() -> Dict[str, Any]:
    return dict(_context.get({}))


def clear_log_context() -> None:
    _context.set({})
