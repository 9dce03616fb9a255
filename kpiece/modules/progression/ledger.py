"""
KPiece Progression Ledger

Purpose
-------
Pure level-up rules: price a level-up and produce the upgraded character.
The caller owns the Berries balance and debits `outcome.cost` itself.

Design Notes
------------
- No side effects, no config access (all parameters passed in).
- Cost is flat-rate on the pre-increase level:
  `levels * cost_unit * character.level`.
- The tier cap is checked before funds, so a capped character always
  reports MaxLevelReached and is never charged.
- When the request overshoots the cap, the level clamps but cost and stat
  gains still use the requested level count. `levels_granted` reports what
  was actually applied.

Usage
-----
    cost = level_up_cost(character, 10)
    outcome = apply_level_up(character, 10, balance=state.berries)
    state.debit(outcome.cost)
"""

from __future__ import annotations

from dataclasses import dataclass

from kpiece.domain.models.character import Character, StatGrowth
from kpiece.modules.shared.exceptions import (
    InsufficientFundsError,
    MaxLevelReachedError,
    ValidationError,
)

DEFAULT_COST_UNIT = 100


@dataclass(frozen=True)
class LevelUpOutcome:
    """
    Result of a successful level-up.

    Attributes
    ----------
    character : Character
        Upgraded copy (same id)
    cost : int
        Berries to debit
    levels_granted : int
        Levels actually added after clamping to the tier cap
    """

    character: Character
    cost: int
    levels_granted: int


def _validate_levels(levels: int) -> None:
    if isinstance(levels, bool) or not isinstance(levels, int) or levels <= 0:
        raise ValidationError("levels", f"levels must be a positive integer, got {levels!r}")


def level_up_cost(
    character: Character,
    levels: int,
    cost_unit: int = DEFAULT_COST_UNIT,
) -> int:
    """
    Berries needed to add `levels` levels.

    Args:
        character: Character to price
        levels: Requested level count
        cost_unit: Berries per level per current level

    Returns:
        levels * cost_unit * character.level

    Example:
        >>> level_up_cost(level_three_character, 10)
        3000
    """
    _validate_levels(levels)
    return levels * cost_unit * character.level


def apply_level_up(
    character: Character,
    levels: int,
    balance: float,
    cost_unit: int = DEFAULT_COST_UNIT,
    growth: StatGrowth = StatGrowth(),
) -> LevelUpOutcome:
    """
    Level a character up against a Berries balance.

    Args:
        character: Character to upgrade
        levels: Requested level count (positive)
        balance: Berries available
        cost_unit: Berries per level per current level
        growth: Stat gains per requested level

    Returns:
        LevelUpOutcome with the upgraded copy and the cost to debit

    Raises:
        ValidationError: levels is not a positive integer
        MaxLevelReachedError: character is already at its tier cap
        InsufficientFundsError: balance is below the cost
    """
    _validate_levels(levels)

    if character.is_max_level():
        raise MaxLevelReachedError(character.id, character.max_level)

    cost = level_up_cost(character, levels, cost_unit)
    if balance < cost:
        raise InsufficientFundsError("berries", cost, balance)

    new_level = min(character.level + levels, character.max_level)
    upgraded = character.with_progress(
        level=new_level,
        stats=character.stats.grown(levels, growth),
    )
    return LevelUpOutcome(
        character=upgraded,
        cost=cost,
        levels_granted=new_level - character.level,
    )
