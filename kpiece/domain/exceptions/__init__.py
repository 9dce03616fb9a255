"""
Domain exceptions package for KPiece.

Exports
-------
- Domain exception classes (re-exported from modules.shared.exceptions)
- EXCEPTION_TEMPLATES: Registry mapping exception types to player-facing text
- format_exception / get_exception_template
"""

from kpiece.modules.shared.exceptions import (
    CharacterNotFoundError,
    CrewFullError,
    EconomyDomainException,
    ErrorSeverity,
    InsufficientFundsError,
    MaxLevelReachedError,
    NotReadyError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

from .registry import (
    EXCEPTION_TEMPLATES,
    ExceptionTemplate,
    format_exception,
    get_exception_template,
)

__all__ = [
    # Exception classes
    "EconomyDomainException",
    "NotReadyError",
    "InsufficientFundsError",
    "MaxLevelReachedError",
    "CrewFullError",
    "CharacterNotFoundError",
    "ValidationError",
    "ErrorSeverity",
    # Utilities
    "is_transient_error",
    "get_error_severity",
    "should_alert",
    # Registry
    "EXCEPTION_TEMPLATES",
    "ExceptionTemplate",
    "format_exception",
    "get_exception_template",
]
