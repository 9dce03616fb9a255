"""
Unit tests for the EconomyState aggregate.

Purpose
-------
Validate every economy transaction and aggregate invariant without the
service layer.

Test Coverage
-------------
- New game bootstrap
- Treasure chest cooldown and reward
- Paid and free draws
- Crew selection limits and no-ops
- Level-up against the Berries balance
- Passive income accrual
- Snapshots and construction-time validation

Testing Strategy
----------------
- Real DrawEngine with a seeded random source and explicit samples
- Failure tests assert the state is unchanged after the exception
"""

import pytest

from kpiece.domain.models.base import DomainValidationError
from kpiece.domain.models.character import STARTER_CHARACTER_ID, create_starter_character
from kpiece.domain.models.economy import EconomyRules, EconomyState, new_game_state
from kpiece.modules.gacha import DrawEngine
from kpiece.modules.rarity import RarityTier
from kpiece.modules.shared.exceptions import (
    CharacterNotFoundError,
    CrewFullError,
    InsufficientFundsError,
    MaxLevelReachedError,
    NotReadyError,
    ValidationError,
)

T0 = 1_700_000_000_000


# ============================================================================
# BOOTSTRAP
# ============================================================================


@pytest.mark.domain
class TestNewGame:
    """Initial state for a player with no save."""

    def test_initial_balances_and_collection(self, state):
        """New games start with 0 Berries, 50 Diamonds and Luffy in the crew."""
        assert state.berries == 0
        assert state.diamonds == 50
        assert list(state.characters) == [STARTER_CHARACTER_ID]
        assert state.crew == (STARTER_CHARACTER_ID,)
        assert state.income_rate == 0.5
        assert state.chest_level == 1
        assert state.last_chest_open_ms == 0
        assert state.last_free_draw_ms == 0
        assert state.unlocked_sagas == frozenset({"east_blue"})
        assert state.unlocked_arcs == frozenset({"romance_dawn"})
        assert state.achievements == ()

    def test_starting_balances_follow_rules(self):
        """Starting currencies come from the rules."""
        state = new_game_state(EconomyRules(starting_berries=500, starting_diamonds=5))

        assert state.berries == 500
        assert state.diamonds == 5


# ============================================================================
# TREASURE CHEST
# ============================================================================


@pytest.mark.domain
class TestOpenChest:
    """Time-gated Berries reward."""

    def test_first_open_awards_base_reward(self, state, rules):
        """Chest level 1 pays 100 Berries and stamps the open time."""
        # Act
        reward = state.open_chest(T0, rules)

        # Assert
        assert reward == 100
        assert state.berries == 100
        assert state.last_chest_open_ms == T0

    def test_second_open_within_interval_not_ready(self, state, rules):
        """Opening again before 60 s raises and changes nothing."""
        # Arrange
        state.open_chest(T0, rules)

        # Act
        with pytest.raises(NotReadyError) as exc_info:
            state.open_chest(T0 + 30_000, rules)

        # Assert
        assert exc_info.value.remaining_ms == 30_000
        assert state.berries == 100
        assert state.last_chest_open_ms == T0

    def test_exact_interval_still_not_ready(self, state, rules):
        """The boundary itself is closed."""
        state.open_chest(T0, rules)

        with pytest.raises(NotReadyError):
            state.open_chest(T0 + 60_000, rules)

    def test_opens_after_interval(self, state, rules):
        """One millisecond past the interval pays again."""
        state.open_chest(T0, rules)

        reward = state.open_chest(T0 + 60_001, rules)

        assert reward == 100
        assert state.berries == 200
        assert state.last_chest_open_ms == T0 + 60_001


# ============================================================================
# DRAWS
# ============================================================================


@pytest.mark.domain
class TestDraw:
    """Paid and free character draws."""

    def test_paid_draw_costs_diamonds(self, state, rules, engine):
        """A paid draw spends 10 Diamonds and adds the character."""
        # Act
        character = state.draw(T0, 10.0, is_free=False, engine=engine, rules=rules)

        # Assert
        assert state.diamonds == 40
        assert character.id in state.characters
        assert character.tier is RarityTier.NORMAL
        assert state.last_free_draw_ms == 0
        assert character.id not in state.crew

    def test_income_rate_tracks_collection(self, state, rules, engine):
        """Income is the sum of every owned character: 0.5 + 0.5 + 1.0."""
        state.draw(T0, 10.0, is_free=False, engine=engine, rules=rules)
        state.draw(T0 + 1, 60.0, is_free=False, engine=engine, rules=rules)

        assert state.income_rate == 2.0
        assert len(state.characters) == 3

    def test_paid_draw_without_diamonds(self, make_state, rules, engine):
        """Fewer than 10 Diamonds raises and draws nothing."""
        # Arrange
        state = make_state(diamonds=5)

        # Act
        with pytest.raises(InsufficientFundsError) as exc_info:
            state.draw(T0, 10.0, is_free=False, engine=engine, rules=rules)

        # Assert
        assert exc_info.value.currency == "diamonds"
        assert exc_info.value.required == 10
        assert state.diamonds == 5
        assert len(state.characters) == 1

    def test_free_draw_uses_cooldown_not_diamonds(self, state, rules, engine):
        """A free draw keeps Diamonds and stamps the free-draw time."""
        state.draw(T0, 10.0, is_free=True, engine=engine, rules=rules)

        assert state.diamonds == 50
        assert state.last_free_draw_ms == T0
        assert len(state.characters) == 2

    def test_free_draw_cooldown(self, state, rules, engine):
        """A second free draw before 300 s is refused; a paid draw still works."""
        # Arrange
        state.draw(T0, 10.0, is_free=True, engine=engine, rules=rules)

        # Act
        with pytest.raises(NotReadyError) as exc_info:
            state.draw(T0 + 299_999, 10.0, is_free=True, engine=engine, rules=rules)
        state.draw(T0 + 299_999, 10.0, is_free=False, engine=engine, rules=rules)

        # Assert
        assert exc_info.value.action == "free_draw"
        assert exc_info.value.remaining_ms == 1
        assert state.diamonds == 40
        assert state.last_free_draw_ms == T0

    def test_free_draw_opens_after_interval(self, state, rules, engine):
        """Free draws become available strictly after 300 s."""
        state.draw(T0, 10.0, is_free=True, engine=engine, rules=rules)

        state.draw(T0 + 300_001, 10.0, is_free=True, engine=engine, rules=rules)

        assert state.last_free_draw_ms == T0 + 300_001

    def test_invalid_sample_changes_nothing(self, state, rules, engine):
        """A rejected sample leaves Diamonds and the collection alone."""
        with pytest.raises(ValidationError):
            state.draw(T0, -5.0, is_free=False, engine=engine, rules=rules)

        assert state.diamonds == 50
        assert len(state.characters) == 1

    def test_id_collision_rejected(self, state, rules, mocker):
        """A generated id that is already owned is refused before any charge."""
        # Arrange
        engine = mocker.MagicMock(spec=DrawEngine)
        engine.draw.return_value = create_starter_character()

        # Act
        with pytest.raises(ValidationError) as exc_info:
            state.draw(T0, 10.0, is_free=False, engine=engine, rules=rules)

        # Assert
        assert exc_info.value.field == "character_id"
        assert state.diamonds == 50
        assert len(state.characters) == 1


# ============================================================================
# CREW
# ============================================================================


@pytest.mark.domain
class TestCrew:
    """Crew selection."""

    def _fill_collection(self, state, rules, engine, count):
        return [
            state.draw(T0 + i, 10.0, is_free=False, engine=engine, rules=rules).id
            for i in range(count)
        ]

    def test_crew_capacity(self, state, rules, engine):
        """Five members fit; the sixth raises CrewFull."""
        # Arrange
        ids = self._fill_collection(state, rules, engine, 5)
        for character_id in ids[:4]:
            assert state.set_crew(character_id, True, rules) is True

        # Act
        with pytest.raises(CrewFullError) as exc_info:
            state.set_crew(ids[4], True, rules)

        # Assert
        assert exc_info.value.max_size == 5
        assert len(state.crew) == 5
        assert ids[4] not in state.crew

    def test_add_keeps_selection_order(self, state, rules, engine):
        """New members append to the end of the crew."""
        ids = self._fill_collection(state, rules, engine, 2)

        state.set_crew(ids[1], True, rules)
        state.set_crew(ids[0], True, rules)

        assert state.crew == (STARTER_CHARACTER_ID, ids[1], ids[0])

    def test_remove_twice_is_noop(self, state, rules):
        """Removing an absent member changes nothing and reports False."""
        assert state.set_crew(STARTER_CHARACTER_ID, False, rules) is True
        assert state.set_crew(STARTER_CHARACTER_ID, False, rules) is False
        assert state.crew == ()

    def test_add_present_member_is_noop(self, state, rules):
        """Adding a member already in the crew reports False."""
        assert state.set_crew(STARTER_CHARACTER_ID, True, rules) is False
        assert state.crew == (STARTER_CHARACTER_ID,)

    def test_add_unknown_character(self, state, rules):
        """Only owned characters can join."""
        with pytest.raises(CharacterNotFoundError):
            state.set_crew("char_missing", True, rules)

    def test_crew_members_resolves_characters(self, state):
        """crew_members returns Character objects in crew order."""
        members = state.crew_members()

        assert [m.id for m in members] == [STARTER_CHARACTER_ID]


# ============================================================================
# LEVEL UP
# ============================================================================


@pytest.mark.domain
class TestLevelUp:
    """Spending Berries on levels."""

    def test_level_up_debits_berries(self, make_state, rules):
        """One level at level 1 costs 100 Berries."""
        # Arrange
        state = make_state(berries=150)

        # Act
        outcome = state.level_up(STARTER_CHARACTER_ID, 1, rules)

        # Assert
        luffy = state.get_character(STARTER_CHARACTER_ID)
        assert outcome.cost == 100
        assert state.berries == 50
        assert luffy.level == 2
        assert luffy.stats.hp == 110
        assert luffy.stats.attack == 27
        assert luffy.stats.defense == 16
        assert luffy.stats.speed == 21

    def test_level_up_does_not_change_income(self, make_state, rules):
        """Income depends on tier only."""
        state = make_state(berries=1000)

        state.level_up(STARTER_CHARACTER_ID, 3, rules)

        assert state.income_rate == 0.5

    def test_insufficient_berries(self, state, rules):
        """No Berries, no level."""
        with pytest.raises(InsufficientFundsError):
            state.level_up(STARTER_CHARACTER_ID, 1, rules)

        assert state.get_character(STARTER_CHARACTER_ID).level == 1
        assert state.berries == 0

    def test_max_level_not_charged(self, make_state, make_character, rules):
        """A capped character raises MaxLevelReached and costs nothing."""
        # Arrange
        veteran = make_character("char_vet", RarityTier.NORMAL, level=45)
        state = make_state(characters=[veteran], berries=1_000_000)

        # Act
        with pytest.raises(MaxLevelReachedError):
            state.level_up("char_vet", 1, rules)

        # Assert
        assert state.berries == 1_000_000
        assert state.get_character("char_vet").level == 45

    def test_unknown_character(self, make_state, rules):
        """Unknown ids raise CharacterNotFound."""
        state = make_state(berries=1000)

        with pytest.raises(CharacterNotFoundError):
            state.level_up("char_missing", 1, rules)


# ============================================================================
# ACCRUAL & SNAPSHOTS
# ============================================================================


@pytest.mark.domain
class TestAccrueAndSnapshot:
    """Passive income and copies."""

    def test_accrue_adds_income_rate(self, state):
        """One tick adds one second of income."""
        amount = state.accrue()

        assert amount == 0.5
        assert state.berries == 0.5

    def test_snapshot_is_independent(self, state, rules):
        """Changing a snapshot never touches the source state."""
        # Arrange
        snapshot = state.snapshot()

        # Act
        snapshot.open_chest(T0, rules)
        snapshot.set_crew(STARTER_CHARACTER_ID, False, rules)

        # Assert
        assert state.berries == 0
        assert state.crew == (STARTER_CHARACTER_ID,)
        assert snapshot.berries == 100

    def test_characters_accessor_returns_copy(self, state):
        """Mutating the returned dict does not change ownership."""
        characters = state.characters
        characters.clear()

        assert len(state.characters) == 1


@pytest.mark.domain
class TestStateValidation:
    """Construction-time invariants."""

    def test_crew_must_reference_owned_characters(self):
        """Unknown crew ids are rejected."""
        with pytest.raises(DomainValidationError) as exc_info:
            EconomyState(0, 50, [create_starter_character()], crew=["ghost"])

        assert exc_info.value.field == "crew"

    def test_crew_rejects_duplicates(self):
        """The same character cannot sit in the crew twice."""
        luffy = create_starter_character()

        with pytest.raises(DomainValidationError):
            EconomyState(0, 50, [luffy], crew=[luffy.id, luffy.id])

    def test_duplicate_character_ids_rejected(self):
        """Character ids are unique within a save."""
        with pytest.raises(DomainValidationError):
            EconomyState(0, 50, [create_starter_character(), create_starter_character()])

    @pytest.mark.parametrize("berries,diamonds", [(-1, 0), (0, -1), (0, 1.5), (float("nan"), 0)])
    def test_invalid_balances(self, berries, diamonds):
        """Balances are non-negative; diamonds are whole."""
        with pytest.raises(DomainValidationError):
            EconomyState(berries, diamonds, [create_starter_character()])
