"""
KPiece Shared Module

Purpose
-------
Provides domain-level foundations for all economy modules:
- Domain exceptions and error handling
- Base service pattern

Architecture
------------
- BaseService: Foundation for service classes (structured logging)
- Domain exceptions: Game-facing errors and rule violations
"""

from __future__ import annotations

from .base_service import BaseService
from .exceptions import (
    CharacterNotFoundError,
    CrewFullError,
    EconomyDomainException,
    ErrorSeverity,
    InsufficientFundsError,
    KPieceError,
    MaxLevelReachedError,
    NotReadyError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    "BaseService",
    "KPieceError",
    "EconomyDomainException",
    "ErrorSeverity",
    "NotReadyError",
    "InsufficientFundsError",
    "MaxLevelReachedError",
    "CrewFullError",
    "CharacterNotFoundError",
    "ValidationError",
    "is_transient_error",
    "get_error_severity",
    "should_alert",
]
