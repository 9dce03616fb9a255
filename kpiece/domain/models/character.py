"""
Character Domain Model for KPiece.

Purpose
-------
Rich domain model representing an owned pirate: rarity tier, level, combat
stats, aura affinity and a fixed four-skill kit.

Responsibilities
----------------
- Enforce character invariants (level within tier cap, four skills, owned >= 1)
- Expose the passive income a character contributes
- Produce leveled copies for the progression ledger

Non-Responsibilities
--------------------
- Level-up pricing and funds checks (handled by the progression ledger)
- Random generation (handled by the draw engine)
- Persistence (handled by `kpiece.persistence.codec`)

Usage Example
-------------
>>> luffy = create_starter_character()
>>> luffy.tier.code, luffy.level, luffy.income
('N', 1, 0.5)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from kpiece.domain.models.base import (
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
    validate_range,
)
from kpiece.modules.rarity.table import RarityTier


# ============================================================================
# CONSTANTS
# ============================================================================

SKILL_SLOTS = 4
DEFAULT_ICON = "🏴‍☠️"
DEFAULT_SAGA_ID = "east_blue"
DEFAULT_ARC_ID = "romance_dawn"
STARTER_CHARACTER_ID = "luffy_east_blue"


# ============================================================================
# ENUMS
# ============================================================================


class Affinity(Enum):
    """Aura affinity. Cosmetic today; combat is out of scope."""

    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"

    @classmethod
    def from_string(cls, value: str) -> "Affinity":
        try:
            return cls(value.lower())
        except (AttributeError, ValueError):
            raise DomainValidationError(f"Unknown affinity: {value!r}", field="aura") from None


class SkillCategory(Enum):
    OFFENSIVE = "offensive"
    DEFENSIVE = "defensive"
    UTILITY = "utility"


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class Skill:
    """
    Immutable value object describing one skill.

    Attributes
    ----------
    name : str
        Skill name
    category : SkillCategory
        Offensive, defensive or utility
    power : int
        Damage dealt; negative values heal
    description : str
        Flavor text
    """

    name: str
    category: SkillCategory
    power: int
    description: str = ""

    def __post_init__(self) -> None:
        validate_not_empty(self.name, "skill.name")
        if not isinstance(self.category, SkillCategory):
            raise DomainValidationError(
                f"skill.category must be a SkillCategory, got {self.category!r}",
                field="skill.category",
            )


@dataclass(frozen=True)
class StatGrowth:
    """
    Per-level stat gains applied by the progression ledger.

    Attributes
    ----------
    hp : int
        Added to both hp and max_hp per level
    attack : int
    defense : int
    speed : int
    """

    hp: int = 10
    attack: int = 2
    defense: int = 1
    speed: int = 1

    def __post_init__(self) -> None:
        validate_non_negative(self.hp, "growth.hp")
        validate_non_negative(self.attack, "growth.attack")
        validate_non_negative(self.defense, "growth.defense")
        validate_non_negative(self.speed, "growth.speed")


@dataclass(frozen=True)
class CharacterStats:
    """
    Immutable combat stats.

    Attributes
    ----------
    hp : int
        Current hit points
    max_hp : int
        Hit point ceiling
    attack : int
    defense : int
    speed : int
    """

    hp: int
    max_hp: int
    attack: int
    defense: int
    speed: int

    def __post_init__(self) -> None:
        for name in ("hp", "max_hp", "attack", "defense", "speed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise DomainValidationError(
                    f"{name} must be an integer, got {value!r}", field=name
                )
            validate_non_negative(value, name)

    def grown(self, levels: int, growth: StatGrowth) -> CharacterStats:
        """
        Return new stats after `levels` levels of growth.

        Examples
        --------
        >>> CharacterStats(100, 100, 25, 15, 20).grown(2, StatGrowth())
        CharacterStats(hp=120, max_hp=120, attack=29, defense=17, speed=22)
        """
        return CharacterStats(
            hp=self.hp + growth.hp * levels,
            max_hp=self.max_hp + growth.hp * levels,
            attack=self.attack + growth.attack * levels,
            defense=self.defense + growth.defense * levels,
            speed=self.speed + growth.speed * levels,
        )


# ============================================================================
# ENTITY
# ============================================================================


class Character(Entity):
    """
    An owned character.

    Created only by the draw engine or the starter bootstrap; the progression
    ledger is the only code that produces a changed copy.

    Attributes
    ----------
    name : str
        Display name
    tier : RarityTier
        Rarity tier (fixes income and level cap)
    level : int
        Current level, 1..tier.max_level
    stats : CharacterStats
        Combat stats
    affinity : Affinity
        Aura color
    skills : Tuple[Skill, ...]
        Exactly four skills, never mutated
    owned : int
        Copies owned (always 1 for drawn characters)
    icon : str
        Display glyph
    saga_id, arc_id : str
        Where the character was recruited
    """

    def __init__(
        self,
        character_id: str,
        name: str,
        tier: RarityTier,
        level: int,
        stats: CharacterStats,
        affinity: Affinity,
        skills: Iterable[Skill],
        owned: int = 1,
        icon: str = DEFAULT_ICON,
        saga_id: str = DEFAULT_SAGA_ID,
        arc_id: str = DEFAULT_ARC_ID,
    ) -> None:
        super().__init__(character_id)
        self.name = name
        self.tier = tier
        self.level = level
        self.stats = stats
        self.affinity = affinity
        self.skills: Tuple[Skill, ...] = tuple(skills)
        self.owned = owned
        self.icon = icon
        self.saga_id = saga_id
        self.arc_id = arc_id
        self._validate()

    def _validate(self) -> None:
        validate_not_empty(self.name, "name")
        if not isinstance(self.tier, RarityTier):
            raise DomainValidationError(f"tier must be a RarityTier, got {self.tier!r}", field="tier")
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise DomainValidationError(f"level must be an integer, got {self.level!r}", field="level")
        validate_range(self.level, 1, self.tier.max_level, "level")
        if not isinstance(self.affinity, Affinity):
            raise DomainValidationError(
                f"affinity must be an Affinity, got {self.affinity!r}", field="aura"
            )
        if len(self.skills) != SKILL_SLOTS:
            raise DomainValidationError(
                f"a character has exactly {SKILL_SLOTS} skills, got {len(self.skills)}",
                field="skills",
            )
        validate_positive(self.owned, "owned")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def income(self) -> float:
        """Berries per second contributed by this character."""
        return self.tier.income

    @property
    def max_level(self) -> int:
        return self.tier.max_level

    def is_max_level(self) -> bool:
        return self.level >= self.tier.max_level

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------

    def with_progress(self, level: int, stats: CharacterStats) -> Character:
        """Return a copy with a new level and stats; identity is preserved."""
        return Character(
            character_id=self.id,
            name=self.name,
            tier=self.tier,
            level=level,
            stats=stats,
            affinity=self.affinity,
            skills=self.skills,
            owned=self.owned,
            icon=self.icon,
            saga_id=self.saga_id,
            arc_id=self.arc_id,
        )

    def __repr__(self) -> str:
        return (
            f"Character(id={self.id!r}, name={self.name!r}, tier={self.tier.code}, "
            f"level={self.level})"
        )


# ============================================================================
# STARTER
# ============================================================================

STARTER_SKILLS: Tuple[Skill, ...] = (
    Skill("Gum-Gum Pistol", SkillCategory.OFFENSIVE, 60, "Stretches an arm out to strike"),
    Skill("Gum-Gum Gatling", SkillCategory.OFFENSIVE, 40, "A barrage of rapid punches"),
    Skill("Determination", SkillCategory.UTILITY, 0, "Raises attack by 20%"),
    Skill("Dodge", SkillCategory.DEFENSIVE, 0, "Evades the next attack"),
)


def create_starter_character(character_id: Optional[str] = None) -> Character:
    """Build the Monkey D. Luffy every new save starts with."""
    return Character(
        character_id=character_id or STARTER_CHARACTER_ID,
        name="Monkey D. Luffy",
        tier=RarityTier.NORMAL,
        level=1,
        stats=CharacterStats(hp=100, max_hp=100, attack=25, defense=15, speed=20),
        affinity=Affinity.RED,
        skills=STARTER_SKILLS,
        owned=1,
        icon=DEFAULT_ICON,
        saga_id=DEFAULT_SAGA_ID,
        arc_id=DEFAULT_ARC_ID,
    )
