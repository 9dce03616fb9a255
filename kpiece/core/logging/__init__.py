"""
KPiece Logging Infrastructure

Exports the structured logging subsystem and log context helpers.
"""

from kpiece.core.logging.logger import (
    LogContext,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "set_log_context",
    "get_log_context",
    "clear_log_context",
]
