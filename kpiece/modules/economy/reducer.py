"""
Economy transaction reducer.

Purpose
-------
Apply one player action to an `EconomyState` and return either the new state
or the rule violation, never a half-applied state.

Design Notes
------------
- `reduce` runs the transaction on a deep copy. On success the copy is the new
  state; on a domain exception the caller gets the original object back,
  untouched, together with the error.
- Domain exceptions are returned, not raised. Anything else (bugs,
  infrastructure) propagates.
- No clock, RNG or config access: `now_ms`, the draw engine and the rules are
  passed in.

Usage
-----
    result = reduce(state, Draw(is_free=False), now_ms, engine, rules)
    if result.ok:
        state = result.state
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Type, Union

from kpiece.domain.models.economy import EconomyRules, EconomyState
from kpiece.modules.gacha.engine import DrawEngine
from kpiece.modules.shared.exceptions import EconomyDomainException


# ============================================================================
# ACTIONS
# ============================================================================


@dataclass(frozen=True)
class OpenChest:
    name: ClassVar[str] = "open_chest"


@dataclass(frozen=True)
class Draw:
    """
    Draw one character.

    Attributes
    ----------
    is_free : bool
        Use the free-draw cooldown instead of diamonds
    sample : Optional[float]
        Uniform sample in percent units; rolled from the engine when None
    """

    name: ClassVar[str] = "draw"

    is_free: bool = False
    sample: Optional[float] = None


@dataclass(frozen=True)
class LevelUp:
    name: ClassVar[str] = "level_up"

    character_id: str
    levels: int = 1


@dataclass(frozen=True)
class SetCrew:
    name: ClassVar[str] = "set_crew"

    character_id: str
    selected: bool


@dataclass(frozen=True)
class Accrue:
    name: ClassVar[str] = "accrue"


Action = Union[OpenChest, Draw, LevelUp, SetCrew, Accrue]


# ============================================================================
# RESULT
# ============================================================================


@dataclass(frozen=True)
class TransactionResult:
    """
    Outcome of one transaction.

    Attributes
    ----------
    ok : bool
        Whether the action was applied
    state : EconomyState
        New state on success, the untouched original on failure
    action : Action
        The action that was attempted
    value : Any
        Action-specific payload on success: chest reward, drawn Character,
        LevelUpOutcome, crew-changed flag, accrued amount
    error : Optional[EconomyDomainException]
        The rule violation on failure
    """

    ok: bool
    state: EconomyState
    action: Action
    value: Any = None
    error: Optional[EconomyDomainException] = None


# ============================================================================
# REDUCER
# ============================================================================

_Handler = Callable[[EconomyState, Any, int, DrawEngine, EconomyRules], Any]


def _open_chest(state, action, now_ms, engine, rules):
    return state.open_chest(now_ms, rules)


def _draw(state, action, now_ms, engine, rules):
    sample = action.sample if action.sample is not None else engine.roll_sample()
    return state.draw(now_ms, sample, action.is_free, engine, rules)


def _level_up(state, action, now_ms, engine, rules):
    return state.level_up(action.character_id, action.levels, rules)


def _set_crew(state, action, now_ms, engine, rules):
    return state.set_crew(action.character_id, action.selected, rules)


def _accrue(state, action, now_ms, engine, rules):
    return state.accrue()


_HANDLERS: Dict[Type[Any], _Handler] = {
    OpenChest: _open_chest,
    Draw: _draw,
    LevelUp: _level_up,
    SetCrew: _set_crew,
    Accrue: _accrue,
}


def reduce(
    state: EconomyState,
    action: Action,
    now_ms: int,
    engine: DrawEngine,
    rules: EconomyRules,
) -> TransactionResult:
    """
    Apply `action` to a copy of `state`.

    Args:
        state: Current state (never mutated)
        action: Action to apply
        now_ms: Current epoch milliseconds
        engine: Draw engine for Draw actions
        rules: Balance rules

    Returns:
        TransactionResult with the new state, or the original state and error

    Raises:
        TypeError: Unknown action type
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown economy action: {action!r}")

    working = copy.deepcopy(state)
    try:
        value = handler(working, action, now_ms, engine, rules)
    except EconomyDomainException as exc:
        return TransactionResult(ok=False, state=state, action=action, error=exc)

    return TransactionResult(ok=True, state=working, action=action, value=value)
