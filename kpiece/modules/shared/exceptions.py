"""
Domain exceptions for the KPiece economy.

Purpose
-------
Define the structured, domain-specific exception hierarchy for economy rules.
These are raised by the domain models and services for expected, recoverable,
player-facing outcomes: a cooldown that has not elapsed, a balance that is too
low, a character already at its tier cap, a full crew. The reducer turns them
into failed transaction results; the notification layer turns them into text.

Design Notes
------------
- All domain exceptions inherit from `EconomyDomainException`, which shares
  its payload (message, details, severity, is_retryable, error_code) with
  the infrastructure errors through `KPieceError`.
- `is_retryable` means waiting makes the action possible again.
- None of these is ever retried automatically.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Union


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning (e.g., cooldowns)
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled (e.g., retryable errors)
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class KPieceError(Exception):
    """
    Structured error shared by the domain and infrastructure hierarchies.

    Subclasses pick `DEFAULT_SEVERITY` / `DEFAULT_RETRYABLE` and pass their
    own `error_code` and `details`; the registry renders `details` into
    player-facing text.
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} | Details: {self.details}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, details={self.details!r}, "
            f"severity={self.severity.value!r}, is_retryable={self.is_retryable!r})"
        )


class EconomyDomainException(KPieceError):
    """
    Base exception for all economy domain errors.

    Example:
        >>> raise EconomyDomainException("Draw failed", {"reason": "no banner"})
    """


class NotReadyError(EconomyDomainException):
    """
    Raised when a time-gated action is still cooling down.

    Becomes possible again once enough wall-clock time has passed, so it is
    flagged retryable, but the player has to trigger it again.

    Args:
        action: Name of the gated action (e.g., "chest", "free_draw")
        remaining_ms: Milliseconds until the gate opens
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG
    DEFAULT_RETRYABLE = True

    def __init__(self, action: str, remaining_ms: int) -> None:
        self.action = action
        self.remaining_ms = remaining_ms
        remaining_seconds = remaining_ms / 1000
        message = f"{action} is not ready: {remaining_seconds:.1f}s remaining"
        super().__init__(
            message,
            details={
                "action": action,
                "label": action.replace("_", " "),
                "remaining_ms": remaining_ms,
                "remaining": remaining_seconds,
                "retry_after": remaining_seconds,
            },
            error_code="NOT_READY",
            is_retryable=True,
        )


class InsufficientFundsError(EconomyDomainException):
    """
    Raised when a currency balance is below the cost of an action.

    Args:
        currency: Currency name ("berries" or "diamonds")
        required: Amount required for the action
        current: Amount currently held
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(
        self,
        currency: str,
        required: Union[int, float],
        current: Union[int, float],
    ) -> None:
        self.currency = currency
        self.required = required
        self.current = current
        message = f"Insufficient {currency}: need {required:,.0f}, have {current:,.0f}"
        super().__init__(
            message,
            details={
                "currency": currency,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code=f"INSUFFICIENT_{currency.upper()}",
        )


class MaxLevelReachedError(EconomyDomainException):
    """
    Raised when leveling a character that already sits at its tier cap.

    Args:
        character_id: ID of the capped character
        max_level: The tier's maximum level
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, character_id: str, max_level: int) -> None:
        self.character_id = character_id
        self.max_level = max_level
        super().__init__(
            f"Character {character_id} is already at max level {max_level}",
            details={
                "character_id": character_id,
                "max_level": max_level,
            },
            error_code="MAX_LEVEL_REACHED",
        )


class CrewFullError(EconomyDomainException):
    """
    Raised when adding a crew member while the crew is at capacity.

    Args:
        max_size: Crew capacity
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        super().__init__(
            f"Crew is full ({max_size} max)",
            details={"max_size": max_size},
            error_code="CREW_FULL",
        )


class CharacterNotFoundError(EconomyDomainException):
    """
    Raised when a character id is not in the owned collection.

    Args:
        character_id: The missing character id
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, character_id: str) -> None:
        self.character_id = character_id
        super().__init__(
            f"Character not found: {character_id}",
            details={"character_id": character_id},
            error_code="CHARACTER_NOT_FOUND",
        )


class ValidationError(EconomyDomainException):
    """
    Raised when transaction input fails validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        error_message = f"Validation error for {field}: {message}"
        super().__init__(
            error_message,
            details={
                "field": field,
                "validation_message": message,
            },
            error_code=f"VALIDATION_{field.upper()}",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """
    Check if an exception represents a condition that clears with time.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, KPieceError):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    if isinstance(exc, KPieceError):
        return exc.severity
    return ErrorSeverity.ERROR  # Default for unknown exceptions


def should_alert(exc: Exception) -> bool:
    """
    Determine if an exception should trigger alerting.

    Args:
        exc: Exception to check

    Returns:
        True if severity is ERROR or CRITICAL, False otherwise.
    """
    severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
