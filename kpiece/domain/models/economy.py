"""
Economy State Domain Model for KPiece.

Purpose
-------
Aggregate root holding one player's whole economy: currencies, the owned
character collection, the active crew, reward timestamps and world flags.
Every economic transaction is a method here.

Responsibilities
----------------
- Enforce aggregate invariants:
  - berries >= 0, diamonds >= 0
  - income_rate equals the sum of owned character incomes
  - crew ids exist, are unique, and never exceed the crew capacity
  - chest level >= 1
- Run transactions: open chest, draw, crew selection, level-up, accrual
- Raise domain exceptions on failure without touching state

Non-Responsibilities
--------------------
- Concurrency and commit/rollback (handled by the reducer and service)
- Persistence (handled by `kpiece.persistence`)
- Reading configuration (an `EconomyRules` object is passed in)

Usage Example
-------------
>>> rules = EconomyRules()
>>> state = new_game_state(rules)
>>> state.income_rate
0.5
>>> state.open_chest(now_ms=1_700_000_000_000, rules=rules)
100
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Tuple

from kpiece.domain.models.base import (
    AggregateRoot,
    DomainValidationError,
    validate_non_negative,
    validate_positive,
)
from kpiece.domain.models.character import (
    DEFAULT_ARC_ID,
    DEFAULT_SAGA_ID,
    Character,
    StatGrowth,
    create_starter_character,
)
from kpiece.modules.cooldown.gate import CooldownGate
from kpiece.modules.progression.ledger import LevelUpOutcome, apply_level_up
from kpiece.modules.shared.exceptions import (
    CharacterNotFoundError,
    CrewFullError,
    InsufficientFundsError,
    ValidationError,
)

if TYPE_CHECKING:
    from kpiece.modules.gacha.engine import DrawEngine


DEFAULT_STATE_ID = "local"


# ============================================================================
# RULES
# ============================================================================


@dataclass(frozen=True)
class EconomyRules:
    """
    Balance numbers for the economy, built once from configuration.

    Attributes
    ----------
    chest_interval_ms : int
        Cooldown between chest openings
    chest_base_reward : int
        Berries per chest level
    free_draw_interval_ms : int
        Cooldown between free draws
    draw_cost : int
        Diamonds per paid draw
    crew_max_size : int
        Crew capacity
    level_cost_unit : int
        Berries per level per current level
    starting_berries : int
    starting_diamonds : int
    growth : StatGrowth
        Stat gains per level
    """

    chest_interval_ms: int = 60_000
    chest_base_reward: int = 100
    free_draw_interval_ms: int = 300_000
    draw_cost: int = 10
    crew_max_size: int = 5
    level_cost_unit: int = 100
    starting_berries: int = 0
    starting_diamonds: int = 50
    growth: StatGrowth = field(default_factory=StatGrowth)

    def __post_init__(self) -> None:
        validate_non_negative(self.chest_interval_ms, "chest_interval_ms")
        validate_non_negative(self.chest_base_reward, "chest_base_reward")
        validate_non_negative(self.free_draw_interval_ms, "free_draw_interval_ms")
        validate_non_negative(self.draw_cost, "draw_cost")
        validate_positive(self.crew_max_size, "crew_max_size")
        validate_non_negative(self.level_cost_unit, "level_cost_unit")
        validate_non_negative(self.starting_berries, "starting_berries")
        validate_non_negative(self.starting_diamonds, "starting_diamonds")

    @property
    def chest_gate(self) -> CooldownGate:
        return CooldownGate("chest", self.chest_interval_ms)

    @property
    def free_draw_gate(self) -> CooldownGate:
        return CooldownGate("free_draw", self.free_draw_interval_ms)


# ============================================================================
# ACHIEVEMENTS
# ============================================================================


@dataclass(frozen=True)
class Achievement:
    """
    Placeholder achievement record. Stored and displayed, never evaluated.

    Attributes
    ----------
    id : str
    name : str
    description : str
    reward_berries : Optional[int]
    reward_diamonds : Optional[int]
    unlocked : bool
    """

    id: str
    name: str
    description: str = ""
    reward_berries: Optional[int] = None
    reward_diamonds: Optional[int] = None
    unlocked: bool = False


# ============================================================================
# AGGREGATE ROOT
# ============================================================================


class EconomyState(AggregateRoot):
    """
    One player's economy.

    Transactions validate everything they need before the first write, so a
    raised domain exception always leaves the state as it was.
    """

    def __init__(
        self,
        berries: float,
        diamonds: int,
        characters: Iterable[Character],
        crew: Iterable[str] = (),
        chest_level: int = 1,
        last_chest_open_ms: int = 0,
        last_free_draw_ms: int = 0,
        unlocked_sagas: Iterable[str] = (DEFAULT_SAGA_ID,),
        unlocked_arcs: Iterable[str] = (DEFAULT_ARC_ID,),
        achievements: Iterable[Achievement] = (),
        state_id: str = DEFAULT_STATE_ID,
    ) -> None:
        super().__init__(state_id)
        self._berries = float(berries)
        self._diamonds = diamonds
        self._characters: Dict[str, Character] = {}
        for character in characters:
            if character.id in self._characters:
                raise DomainValidationError(
                    f"duplicate character id {character.id!r}", field="characters"
                )
            self._characters[character.id] = character
        self._crew: List[str] = list(crew)
        self._chest_level = chest_level
        self._last_chest_open_ms = last_chest_open_ms
        self._last_free_draw_ms = last_free_draw_ms
        self._unlocked_sagas: List[str] = list(dict.fromkeys(unlocked_sagas))
        self._unlocked_arcs: List[str] = list(dict.fromkeys(unlocked_arcs))
        self._achievements: List[Achievement] = list(achievements)
        self._income_rate = 0.0
        self._validate()
        self._recompute_income()

    def _validate(self) -> None:
        if math.isnan(self._berries) or math.isinf(self._berries):
            raise DomainValidationError("berries must be finite", field="berries")
        validate_non_negative(self._berries, "berries")
        if isinstance(self._diamonds, bool) or not isinstance(self._diamonds, int):
            raise DomainValidationError(
                f"diamonds must be an integer, got {self._diamonds!r}", field="diamonds"
            )
        validate_non_negative(self._diamonds, "diamonds")
        validate_positive(self._chest_level, "chest_level")
        validate_non_negative(self._last_chest_open_ms, "last_chest_open_ms")
        validate_non_negative(self._last_free_draw_ms, "last_free_draw_ms")
        if len(set(self._crew)) != len(self._crew):
            raise DomainValidationError("crew contains duplicates", field="crew")
        for member_id in self._crew:
            if member_id not in self._characters:
                raise DomainValidationError(
                    f"crew member {member_id!r} is not an owned character", field="crew"
                )

    def _recompute_income(self) -> None:
        self._income_rate = math.fsum(c.income for c in self._characters.values())

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def berries(self) -> float:
        return self._berries

    @property
    def diamonds(self) -> int:
        return self._diamonds

    @property
    def income_rate(self) -> float:
        """Berries per second, the sum of every owned character's income."""
        return self._income_rate

    @property
    def characters(self) -> Dict[str, Character]:
        """Owned characters by id, in acquisition order (a copy)."""
        return dict(self._characters)

    @property
    def crew(self) -> Tuple[str, ...]:
        return tuple(self._crew)

    @property
    def chest_level(self) -> int:
        return self._chest_level

    @property
    def last_chest_open_ms(self) -> int:
        return self._last_chest_open_ms

    @property
    def last_free_draw_ms(self) -> int:
        return self._last_free_draw_ms

    @property
    def unlocked_sagas(self) -> FrozenSet[str]:
        return frozenset(self._unlocked_sagas)

    @property
    def unlocked_arcs(self) -> FrozenSet[str]:
        return frozenset(self._unlocked_arcs)

    @property
    def achievements(self) -> Tuple[Achievement, ...]:
        return tuple(self._achievements)

    def get_character(self, character_id: str) -> Character:
        """
        Look up an owned character.

        Raises
        ------
        CharacterNotFoundError
            If no owned character has this id
        """
        try:
            return self._characters[character_id]
        except KeyError:
            raise CharacterNotFoundError(character_id) from None

    def crew_members(self) -> List[Character]:
        return [self._characters[cid] for cid in self._crew]

    def chest_reward(self, rules: EconomyRules) -> int:
        return rules.chest_base_reward * self._chest_level

    def snapshot(self) -> EconomyState:
        """Deep copy for the presentation layer; mutating it has no effect here."""
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def open_chest(self, now_ms: int, rules: EconomyRules) -> int:
        """
        Collect the time-gated treasure chest.

        Returns
        -------
        int
            Berries awarded (base reward * chest level)

        Raises
        ------
        NotReadyError
            If the chest cooldown has not elapsed
        """
        rules.chest_gate.check(now_ms, self._last_chest_open_ms)
        reward = self.chest_reward(rules)
        self._berries += reward
        self._last_chest_open_ms = now_ms
        return reward

    def draw(
        self,
        now_ms: int,
        sample: float,
        is_free: bool,
        engine: DrawEngine,
        rules: EconomyRules,
    ) -> Character:
        """
        Acquire a random character.

        A free draw needs the free-draw gate open and stamps its timestamp;
        a paid draw costs `rules.draw_cost` diamonds and leaves the timestamp
        alone. Duplicate tiers are independent characters.

        Raises
        ------
        NotReadyError
            Free draw still cooling down
        InsufficientFundsError
            Paid draw without enough diamonds
        ValidationError
            Invalid sample, or a generated id collides with an owned one
        """
        if is_free:
            rules.free_draw_gate.check(now_ms, self._last_free_draw_ms)
        elif self._diamonds < rules.draw_cost:
            raise InsufficientFundsError("diamonds", rules.draw_cost, self._diamonds)

        character = engine.draw(sample, now_ms)
        if character.id in self._characters:
            raise ValidationError("character_id", f"id {character.id!r} is already owned")

        if is_free:
            self._last_free_draw_ms = now_ms
        else:
            self._diamonds -= rules.draw_cost
        self._characters[character.id] = character
        self._recompute_income()
        return character

    def set_crew(self, character_id: str, selected: bool, rules: EconomyRules) -> bool:
        """
        Add a character to the crew or remove it.

        Returns
        -------
        bool
            True if the crew changed. Adding a member already present and
            removing one that is absent are no-ops.

        Raises
        ------
        CharacterNotFoundError
            Adding an id that is not owned
        CrewFullError
            Adding while the crew is at capacity
        """
        if not selected:
            if character_id not in self._crew:
                return False
            self._crew.remove(character_id)
            return True

        if character_id not in self._characters:
            raise CharacterNotFoundError(character_id)
        if character_id in self._crew:
            return False
        if len(self._crew) >= rules.crew_max_size:
            raise CrewFullError(rules.crew_max_size)
        self._crew.append(character_id)
        return True

    def level_up(self, character_id: str, levels: int, rules: EconomyRules) -> LevelUpOutcome:
        """
        Spend Berries to level a character.

        Raises
        ------
        CharacterNotFoundError
            Unknown id
        ValidationError
            levels is not a positive integer
        MaxLevelReachedError
            Character already at its tier cap
        InsufficientFundsError
            Not enough Berries
        """
        character = self.get_character(character_id)
        outcome = apply_level_up(
            character,
            levels,
            balance=self._berries,
            cost_unit=rules.level_cost_unit,
            growth=rules.growth,
        )
        self._berries -= outcome.cost
        self._characters[character_id] = outcome.character
        return outcome

    def accrue(self) -> float:
        """Add one second of passive income; returns the amount added."""
        amount = self._income_rate
        self._berries += amount
        return amount

    def __repr__(self) -> str:
        return (
            f"EconomyState(berries={self._berries}, diamonds={self._diamonds}, "
            f"characters={len(self._characters)}, crew={self._crew!r})"
        )


def new_game_state(rules: EconomyRules) -> EconomyState:
    """Bootstrap state for a player with no save."""
    starter = create_starter_character()
    return EconomyState(
        berries=rules.starting_berries,
        diamonds=rules.starting_diamonds,
        characters=[starter],
        crew=[starter.id],
        chest_level=1,
        last_chest_open_ms=0,
        last_free_draw_ms=0,
        unlocked_sagas=[DEFAULT_SAGA_ID],
        unlocked_arcs=[DEFAULT_ARC_ID],
        achievements=[],
    )
