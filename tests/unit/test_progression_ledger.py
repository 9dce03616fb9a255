"""
Unit tests for the progression ledger.

Test Coverage
-------------
- Level-up pricing
- Check order: cap before funds
- Stat growth and level clamping
- Invalid level counts

Testing Strategy
----------------
- Pure functions, no state or service involved
- Characters built with the `make_character` factory fixture
"""

import pytest

from kpiece.domain.models.character import StatGrowth
from kpiece.modules.progression import apply_level_up, level_up_cost
from kpiece.modules.rarity import RarityTier
from kpiece.modules.shared.exceptions import (
    InsufficientFundsError,
    MaxLevelReachedError,
    ValidationError,
)


@pytest.mark.unit
class TestLevelUpCost:
    """Flat-rate cost on the current level."""

    def test_cost_uses_current_level(self, make_character):
        """Level 3, 10 levels: 10 * 100 * 3."""
        character = make_character(level=3)

        assert level_up_cost(character, 10) == 3000

    def test_custom_cost_unit(self, make_character):
        """Cost unit scales linearly."""
        character = make_character(level=2)

        assert level_up_cost(character, 1, cost_unit=50) == 100

    @pytest.mark.parametrize("levels", [0, -1, 1.5, True, "2"])
    def test_invalid_levels(self, make_character, levels):
        """Only positive integers are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            level_up_cost(make_character(), levels)

        assert exc_info.value.field == "levels"


@pytest.mark.unit
class TestApplyLevelUp:
    """Applying a level-up against a balance."""

    def test_single_level(self, make_character):
        """One level adds one level of growth and costs unit * level."""
        # Arrange
        character = make_character(level=1)

        # Act
        outcome = apply_level_up(character, 1, balance=100)

        # Assert
        assert outcome.cost == 100
        assert outcome.levels_granted == 1
        assert outcome.character.level == 2
        assert outcome.character.id == character.id
        assert outcome.character.stats.hp == 110
        assert outcome.character.stats.max_hp == 110
        assert outcome.character.stats.attack == 22
        assert outcome.character.stats.defense == 11
        assert outcome.character.stats.speed == 11
        assert character.level == 1

    def test_custom_growth(self, make_character):
        """Growth per level comes from the StatGrowth passed in."""
        outcome = apply_level_up(
            make_character(), 2, balance=1000, growth=StatGrowth(hp=5, attack=1, defense=0, speed=3)
        )

        assert outcome.character.stats.hp == 110
        assert outcome.character.stats.attack == 22
        assert outcome.character.stats.defense == 10
        assert outcome.character.stats.speed == 16

    def test_insufficient_funds(self, make_character):
        """A balance below the cost raises with the berries shortfall."""
        with pytest.raises(InsufficientFundsError) as exc_info:
            apply_level_up(make_character(level=1), 1, balance=99)

        error = exc_info.value
        assert error.currency == "berries"
        assert error.required == 100
        assert error.current == 99
        assert error.details["deficit"] == 1

    def test_max_level_checked_before_funds(self, make_character):
        """A capped character reports max level even with no money."""
        character = make_character(tier=RarityTier.NORMAL, level=45)

        with pytest.raises(MaxLevelReachedError) as exc_info:
            apply_level_up(character, 1, balance=0)

        assert exc_info.value.max_level == 45

    def test_overshoot_clamps_level_but_charges_request(self, make_character):
        """Level stops at the cap; cost and stats follow the request."""
        # Arrange
        character = make_character(tier=RarityTier.NORMAL, level=44)

        # Act
        outcome = apply_level_up(character, 5, balance=1_000_000)

        # Assert
        assert outcome.character.level == 45
        assert outcome.levels_granted == 1
        assert outcome.cost == 5 * 100 * 44
        assert outcome.character.stats.hp == 150
        assert outcome.character.stats.attack == 30
