"""
Infrastructure exceptions for the KPiece economy core.

Configuration problems, save store transport failures and save documents
that do not match the state schema. These are engineering problems, not
game outcomes; rule violations (cooldowns, funds, caps) live in
`kpiece.modules.shared.exceptions`.
"""

from __future__ import annotations

from kpiece.modules.shared.exceptions import ErrorSeverity, KPieceError


class KPieceInfrastructureException(KPieceError):
    """Base exception for infrastructure-level errors."""


class ConfigurationError(KPieceInfrastructureException):
    """A configuration key is invalid or missing."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


class PersistenceError(KPieceInfrastructureException):
    """
    The save store could not be read or written.

    Saves are best effort: the in-memory change stays committed and the next
    mutation saves again.

    Args:
        operation: Store operation that failed ("load", "save", ...)
        original_error: The underlying transport exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Save store error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="PERSISTENCE_ERROR",
        )


class CorruptSaveError(KPieceInfrastructureException):
    """
    A stored save document does not match the state schema.

    There is no migration path; the store has to be cleared.
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Save document is corrupt: {reason}",
            details={"reason": reason},
            error_code="CORRUPT_SAVE",
        )
