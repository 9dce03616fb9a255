"""
Base Service Foundation

Purpose
-------
Provides the foundational class for the KPiece services. Services own
runtime state, serialize access to it, and delegate every rule decision to
the pure domain code (models, ledger, reducer).

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Common error logging patterns

What this class does NOT do:
- Read configuration (services receive an `EconomyRules` object)
- Persist state (services are handed a save store)
- Contain game-specific logic

Usage
-----
    class EconomyService(BaseService):
        def __init__(self, state, rules, engine, store, logger):
            super().__init__(logger)
            self._state = state

        async def open_chest(self):
            self.log_operation("open_chest")
            ...
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import ErrorSeverity, get_error_severity


class BaseService:
    """
    Base class for KPiece services.

    Args:
        logger: Structured logger instance
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.log = logger

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        """
        Log a service error with full context.

        Args:
            operation: Name of the operation that failed
            error: The exception that occurred
            **context: Additional context data
        """
        self.log.error(
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )

    def log_rejection(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        """
        Log an expected rule violation at the level its severity asks for.

        Cooldowns log at DEBUG, funds and caps at INFO; anything flagged for
        alerting goes out as an error.

        Args:
            operation: Name of the rejected operation
            error: The domain exception
            **context: Additional context data
        """
        severity = get_error_severity(error)
        level = _SEVERITY_LEVELS.get(severity.value, logging.ERROR)
        payload = {
            "operation": operation,
            "error_type": type(error).__name__,
            "error_code": getattr(error, "error_code", None),
            **context,
        }
        if severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self.log_error(operation, error, **context)
            return
        self.log.log(level, f"Rejected {operation}: {error}", extra=payload)


_SEVERITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}
