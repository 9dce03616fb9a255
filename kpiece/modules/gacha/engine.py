"""
Draw Engine for KPiece
======================

Turns a uniform sample into a freshly generated character.

Handles:
- Tier selection by cumulative weight walk over the rarity table
- Stat generation from the tier's level cap
- Cosmetic rolls (aura, icon) from an injected random source
- Character id generation

Randomness is injected (`random.Random`) so draws are reproducible under a
seed. The engine never touches currencies or cooldowns; the economy state
does that before asking for a character.
"""

from __future__ import annotations

import math
import random
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from kpiece.domain.models.character import (
    DEFAULT_ARC_ID,
    DEFAULT_SAGA_ID,
    Affinity,
    Character,
    CharacterStats,
    Skill,
    SkillCategory,
)
from kpiece.modules.rarity.table import ORDERED_TIERS, RarityTier, tier_params
from kpiece.modules.shared.exceptions import ValidationError

SAMPLE_SCALE = 100

DRAW_ICONS: Tuple[str, ...] = ("⚔️", "🏴‍☠️", "👑", "💎", "🌟")

DRAW_SKILLS: Tuple[Skill, ...] = (
    Skill("Strike", SkillCategory.OFFENSIVE, 50, "Basic attack"),
    Skill("Guard", SkillCategory.DEFENSIVE, 0, "Raises defense"),
    Skill("Heal", SkillCategory.UTILITY, -30, "Restores HP"),
    Skill("Special Move", SkillCategory.OFFENSIVE, 80, "Powerful attack"),
)


def select_tier(sample: float) -> RarityTier:
    """
    Map a sample in [0, 100) to a tier.

    Walks the tiers in declared order accumulating weights and returns the
    first tier whose cumulative weight exceeds the sample. Each tier owns the
    half-open band [previous cumulative, cumulative), so 49.999 selects Normal
    and 50.0 selects Rare. The browser build compared with `<=` and sent 50.0
    to Normal; the strict comparison is intended.

    Samples at or beyond the total weight fall back to Legendary.

    Args:
        sample: Uniform sample scaled to percent

    Returns:
        Selected tier

    Raises:
        ValidationError: sample is negative, NaN or not a number

    Example:
        >>> select_tier(49.999).code, select_tier(50.0).code
        ('N', 'R')
    """
    if isinstance(sample, bool) or not isinstance(sample, (int, float)):
        raise ValidationError("sample", f"sample must be a number, got {sample!r}")
    if (isinstance(sample, float) and math.isnan(sample)) or sample < 0:
        raise ValidationError("sample", f"sample must be >= 0, got {sample!r}")

    if isinstance(sample, float):
        if math.isinf(sample):
            return RarityTier.LEGENDARY
        target = Decimal(repr(float(sample)))
    else:
        # Exact; huge ints would overflow a float conversion
        target = Decimal(sample)
    cumulative = Decimal("0")
    for tier in ORDERED_TIERS:
        cumulative += tier_params(tier).weight
        if target < cumulative:
            return tier
    return RarityTier.LEGENDARY


def draw_stats(tier: RarityTier) -> CharacterStats:
    """
    Base stats for a freshly drawn character of `tier`.

    Example:
        >>> draw_stats(RarityTier.NORMAL)
        CharacterStats(hp=140, max_hp=140, attack=55, defense=27, speed=30)
    """
    max_level = tier_params(tier).max_level
    hp = 50 + max_level * 2
    return CharacterStats(
        hp=hp,
        max_hp=hp,
        attack=10 + max_level,
        defense=5 + max_level // 2,
        speed=15 + max_level // 3,
    )


class DrawEngine:
    """
    Generates characters from uniform samples.

    Args:
        rng: Random source for cosmetic rolls and id suffixes
        icons: Icon pool to pick from
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        icons: Sequence[str] = DRAW_ICONS,
    ) -> None:
        self._rng = rng or random.Random()
        self._icons = tuple(icons)

    def roll_sample(self) -> float:
        """Uniform sample in [0, 100) from the engine's random source."""
        return self._rng.random() * SAMPLE_SCALE

    def new_character_id(self, now_ms: int) -> str:
        return f"char_{now_ms}_{self._rng.getrandbits(32):08x}"

    def draw(self, sample: float, now_ms: int) -> Character:
        """
        Build a new level-1 character for the tier `sample` selects.

        Args:
            sample: Uniform sample in percent units
            now_ms: Current epoch milliseconds (used in the id)

        Returns:
            New Character with income equal to its tier income

        Raises:
            ValidationError: sample is invalid
        """
        tier = select_tier(sample)
        return Character(
            character_id=self.new_character_id(now_ms),
            name=f"Pirate {tier.code}",
            tier=tier,
            level=1,
            stats=draw_stats(tier),
            affinity=self._rng.choice(tuple(Affinity)),
            skills=DRAW_SKILLS,
            owned=1,
            icon=self._rng.choice(self._icons),
            saga_id=DEFAULT_SAGA_ID,
            arc_id=DEFAULT_ARC_ID,
        )
