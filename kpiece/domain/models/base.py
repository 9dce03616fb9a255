"""
Base domain model classes for KPiece.

Purpose
-------
Identity semantics for characters and the economy state, plus the invariant
checks every model runs when it is built or changed.

Non-Responsibilities
--------------------
- Persistence (handled by `kpiece.persistence`)
- Player-facing rule violations (`kpiece.modules.shared.exceptions`)

Design Patterns
---------------
- **Entity**: identified by id; attribute changes keep it the same entity
- **Value Object**: frozen dataclass validated in ``__post_init__``
- **Aggregate Root**: the only entry point for changes to what it owns
"""

from __future__ import annotations

from abc import ABC
from typing import Optional


class DomainValidationError(Exception):
    """
    A model invariant does not hold.

    Raised while building models from untrusted data such as save documents.
    `field` names the offending attribute when there is one.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class Entity(ABC):
    """Object whose equality is its id."""

    def __init__(self, entity_id: str) -> None:
        validate_not_empty(entity_id, "id")
        self._id = entity_id

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Entity) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self._id)


class AggregateRoot(Entity):
    """
    Consistency boundary.

    Subclasses expose business methods that keep their invariants and hand
    out copies of internal collections, never the collections themselves.
    """


# ============================================================================
# Invariant checks
# ============================================================================


def _fail(field_name: str, problem: str) -> None:
    raise DomainValidationError(f"{field_name} {problem}", field=field_name)


def validate_positive(value: int, field_name: str) -> None:
    if value <= 0:
        _fail(field_name, f"must be positive, got {value}")


def validate_non_negative(value: float, field_name: str) -> None:
    if value < 0:
        _fail(field_name, f"must be non-negative, got {value}")


def validate_range(value: int, min_val: int, max_val: int, field_name: str) -> None:
    """Inclusive on both ends."""
    if value < min_val or value > max_val:
        _fail(field_name, f"must be between {min_val} and {max_val}, got {value}")


def validate_not_empty(value: str, field_name: str) -> None:
    """Reject non-strings as well as blank strings."""
    if not isinstance(value, str) or not value.strip():
        _fail(field_name, "cannot be empty")
