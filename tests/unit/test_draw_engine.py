"""
Unit tests for the draw engine.

Test Coverage
-------------
- Tier selection on band boundaries
- Invalid samples
- Stat formulas per tier
- Generated character shape (name, skills, level, id format)
- Reproducibility under a seeded random source

Testing Strategy
----------------
- Samples are passed explicitly so tier selection is deterministic
- Cosmetic rolls use random.Random with a fixed seed
"""

import math
import random
import re

import pytest

from kpiece.domain.models.character import Affinity, CharacterStats
from kpiece.modules.gacha import DRAW_SKILLS, DrawEngine, draw_stats, select_tier
from kpiece.modules.gacha.engine import DRAW_ICONS
from kpiece.modules.rarity import RarityTier
from kpiece.modules.shared.exceptions import ValidationError

NOW = 1_700_000_000_000


@pytest.mark.unit
class TestSelectTier:
    """Cumulative weight walk."""

    @pytest.mark.parametrize(
        "sample,expected",
        [
            (0, RarityTier.NORMAL),
            (49.999, RarityTier.NORMAL),
            (50.0, RarityTier.RARE),
            (79.999, RarityTier.RARE),
            (80.0, RarityTier.SUPER_RARE),
            (95.0, RarityTier.SUPER_SUPER_RARE),
            (99.88, RarityTier.SUPER_SUPER_RARE),
            (99.89, RarityTier.ULTRA_RARE),
            (99.98, RarityTier.ULTRA_RARE),
            (99.99, RarityTier.LEGENDARY),
            (99.9999, RarityTier.LEGENDARY),
        ],
    )
    def test_band_boundaries(self, sample, expected):
        """Each tier owns [previous cumulative, cumulative)."""
        assert select_tier(sample) is expected

    @pytest.mark.parametrize("sample", [100, 100.0, 150.5, math.inf, 10**400])
    def test_samples_past_total_fall_back_to_legendary(self, sample):
        """Out-of-range high samples resolve to the rarest tier."""
        assert select_tier(sample) is RarityTier.LEGENDARY

    def test_integer_samples_are_exact(self):
        """Integers compare exactly, however large."""
        assert select_tier(49) is RarityTier.NORMAL
        assert select_tier(50) is RarityTier.RARE

    @pytest.mark.parametrize("sample", [-0.1, -50, -(10**400), math.nan, "50", None, True])
    def test_invalid_samples_raise(self, sample):
        """Negative, NaN and non-numeric samples are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            select_tier(sample)

        assert exc_info.value.field == "sample"


@pytest.mark.unit
class TestDrawStats:
    """Base stats derived from the tier level cap."""

    def test_normal_tier_stats(self):
        """Max level 45 gives 140/55/27/30."""
        assert draw_stats(RarityTier.NORMAL) == CharacterStats(
            hp=140, max_hp=140, attack=55, defense=27, speed=30
        )

    def test_legendary_tier_stats(self):
        """Max level 125 gives 300/135/67/56."""
        assert draw_stats(RarityTier.LEGENDARY) == CharacterStats(
            hp=300, max_hp=300, attack=135, defense=67, speed=56
        )

    def test_rare_tier_stats_floor_division(self):
        """Odd divisions round down."""
        stats = draw_stats(RarityTier.RARE)

        assert stats.defense == 30
        assert stats.speed == 31


@pytest.mark.unit
class TestDrawEngine:
    """Character generation."""

    def test_draw_builds_level_one_character(self, engine):
        """A draw yields a fresh level-1 character of the sampled tier."""
        # Act
        character = engine.draw(60.0, NOW)

        # Assert
        assert character.tier is RarityTier.RARE
        assert character.name == "Pirate R"
        assert character.level == 1
        assert character.owned == 1
        assert character.income == 1.0
        assert character.skills == DRAW_SKILLS
        assert len(character.skills) == 4
        assert character.stats == draw_stats(RarityTier.RARE)
        assert isinstance(character.affinity, Affinity)
        assert character.icon in DRAW_ICONS

    def test_character_id_format(self, engine):
        """Ids embed the draw time and a random hex suffix."""
        character = engine.draw(10.0, NOW)

        assert re.fullmatch(rf"char_{NOW}_[0-9a-f]{{8}}", character.id)

    def test_consecutive_draws_get_distinct_ids(self, engine):
        """Two draws in the same millisecond still differ."""
        first = engine.draw(10.0, NOW)
        second = engine.draw(10.0, NOW)

        assert first.id != second.id

    def test_seeded_engines_are_reproducible(self):
        """Same seed, same samples, same characters."""
        # Arrange
        a = DrawEngine(random.Random(7))
        b = DrawEngine(random.Random(7))

        # Act
        samples_a = [a.roll_sample() for _ in range(5)]
        samples_b = [b.roll_sample() for _ in range(5)]
        drawn_a = a.draw(samples_a[0], NOW)
        drawn_b = b.draw(samples_b[0], NOW)

        # Assert
        assert samples_a == samples_b
        assert drawn_a.id == drawn_b.id
        assert drawn_a.affinity is drawn_b.affinity
        assert drawn_a.icon == drawn_b.icon

    def test_roll_sample_range(self, engine):
        """Rolled samples are percent values in [0, 100)."""
        samples = [engine.roll_sample() for _ in range(200)]

        assert all(0 <= s < 100 for s in samples)

    def test_invalid_sample_raises_before_generation(self, engine):
        """A bad sample never produces a character."""
        with pytest.raises(ValidationError):
            engine.draw(-1.0, NOW)
