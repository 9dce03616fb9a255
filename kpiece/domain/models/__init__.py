"""
Domain models package for KPiece.

Purpose
-------
Rich domain models with business logic. These models encapsulate the
economy rules, validation and state transitions.

Design Notes
------------
- Characters are entities; stats, skills and growth are frozen value objects.
- `EconomyState` is the single aggregate root; every transaction goes
  through it.
- Persistence converts between these models and save documents in
  `kpiece.persistence.codec`.
"""

from .base import (
    AggregateRoot,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
    validate_range,
)
from .character import (
    Affinity,
    Character,
    CharacterStats,
    Skill,
    SkillCategory,
    StatGrowth,
    create_starter_character,
)
from .economy import Achievement, EconomyRules, EconomyState, new_game_state

__all__ = [
    # Base classes
    "Entity",
    "AggregateRoot",
    "DomainValidationError",
    # Validators
    "validate_positive",
    "validate_non_negative",
    "validate_range",
    "validate_not_empty",
    # Characters
    "Affinity",
    "SkillCategory",
    "Skill",
    "StatGrowth",
    "CharacterStats",
    "Character",
    "create_starter_character",
    # Economy
    "Achievement",
    "EconomyRules",
    "EconomyState",
    "new_game_state",
]
