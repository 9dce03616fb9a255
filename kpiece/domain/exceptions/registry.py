"""
Exception message template registry for KPiece.

Purpose
-------
Single source of truth for exception-to-message mappings. Converts domain and
infrastructure exceptions into player-facing text with a title, a message and
optional guidance, so no presentation code hardcodes error strings.

Design Notes
------------
Each template contains:
- title: Short, clear error title
- template: Message template with {placeholder} interpolation from
  the exception's `details`
- help_text: Optional guidance for the player
- severity: ErrorSeverity level for visual styling
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from kpiece.core.exceptions import (
    ConfigurationError,
    CorruptSaveError,
    KPieceInfrastructureException,
    PersistenceError,
)
from kpiece.modules.shared.exceptions import (
    CharacterNotFoundError,
    CrewFullError,
    EconomyDomainException,
    ErrorSeverity,
    InsufficientFundsError,
    KPieceError,
    MaxLevelReachedError,
    NotReadyError,
    ValidationError,
)


class ExceptionTemplate:
    """Template for formatting exception messages."""

    def __init__(
        self,
        title: str,
        template: str,
        help_text: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ):
        self.title = title
        self.template = template
        self.help_text = help_text
        self.severity = severity

    def format(self, exception: Exception) -> Dict[str, Any]:
        """
        Format exception using template.

        Args:
            exception: Exception instance to format

        Returns:
            Dict with 'title', 'description', 'help_text', 'severity'
        """
        details = {}
        if isinstance(exception, KPieceError):
            details = exception.details.copy()

        try:
            description = self.template.format(**details)
        except (KeyError, ValueError):
            description = getattr(exception, "message", None) or str(exception)

        return {
            "title": self.title,
            "description": description,
            "help_text": self.help_text,
            "severity": self.severity,
        }


# ============================================================================
# EXCEPTION TEMPLATE REGISTRY
# ============================================================================

EXCEPTION_TEMPLATES: Dict[type, ExceptionTemplate] = {
    # Domain Exceptions
    NotReadyError: ExceptionTemplate(
        title="Not Ready",
        template="The {label} is not ready yet. Try again in {remaining:.1f}s.",
        help_text="Rewards refill over time.",
        severity=ErrorSeverity.DEBUG,
    ),
    InsufficientFundsError: ExceptionTemplate(
        title="Not Enough Funds",
        template="You need {required:,.0f} {currency}, but you only have {current:,.0f}.",
        help_text="Open the treasure chest or wait for your crew's income.",
        severity=ErrorSeverity.INFO,
    ),
    MaxLevelReachedError: ExceptionTemplate(
        title="Max Level",
        template="This character is already at max level ({max_level}).",
        help_text=None,
        severity=ErrorSeverity.INFO,
    ),
    CrewFullError: ExceptionTemplate(
        title="Crew Full",
        template="Your crew is full ({max_size} max).",
        help_text="Remove a member before adding another.",
        severity=ErrorSeverity.INFO,
    ),
    CharacterNotFoundError: ExceptionTemplate(
        title="Character Not Found",
        template="Character {character_id} is not in your collection.",
        help_text=None,
        severity=ErrorSeverity.INFO,
    ),
    ValidationError: ExceptionTemplate(
        title="Invalid Input",
        template="{field}: {validation_message}",
        help_text="Please check your input and try again.",
        severity=ErrorSeverity.INFO,
    ),
    EconomyDomainException: ExceptionTemplate(
        title="Action Failed",
        template="That action could not be completed.",
        help_text=None,
        severity=ErrorSeverity.ERROR,
    ),
    # Infrastructure Exceptions
    ConfigurationError: ExceptionTemplate(
        title="Configuration Error",
        template="A configuration error occurred ({config_key}).",
        help_text="Error code: CONFIG_ERROR",
        severity=ErrorSeverity.CRITICAL,
    ),
    PersistenceError: ExceptionTemplate(
        title="Save Failed",
        template="Your progress could not be saved. It will be saved again on the next change.",
        help_text=None,
        severity=ErrorSeverity.WARNING,
    ),
    CorruptSaveError: ExceptionTemplate(
        title="Corrupt Save",
        template="Your save could not be read: {reason}",
        help_text="The save has to be cleared to continue.",
        severity=ErrorSeverity.CRITICAL,
    ),
    KPieceInfrastructureException: ExceptionTemplate(
        title="System Error",
        template="A system error occurred. Please try again.",
        help_text=None,
        severity=ErrorSeverity.ERROR,
    ),
}

_FALLBACK_TEMPLATE = ExceptionTemplate(
    title="Unexpected Error",
    template="Something went wrong.",
    help_text=None,
    severity=ErrorSeverity.ERROR,
)


def get_exception_template(exception: Exception) -> Optional[ExceptionTemplate]:
    """
    Get the template for an exception, walking base classes.

    Args:
        exception: Exception instance

    Returns:
        ExceptionTemplate if one matches, None otherwise
    """
    for exception_type in type(exception).__mro__:
        template = EXCEPTION_TEMPLATES.get(exception_type)
        if template is not None:
            return template
    return None


def format_exception(exception: Exception) -> Dict[str, Any]:
    """
    Render an exception for the player.

    Unknown exception types get a generic message; their text is never shown.
    """
    template = get_exception_template(exception) or _FALLBACK_TEMPLATE
    return template.format(exception)
