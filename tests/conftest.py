"""
Pytest Configuration and Fixtures for KPiece Tests
==================================================

Purpose
-------
Centralized test fixtures for the KPiece test suite: balance rules, seeded
draw engines, fresh game states, a controllable clock, in-memory save
stores and notifier doubles.

Architecture Notes
------------------
- Unit tests run without network or disk (memory store, mocked redis).
- Async service tests use pytest-asyncio.
- Randomness is always seeded; time is always a FakeClock.
"""

from __future__ import annotations

import os

# Static config is read at import time; pin the test environment first.
os.environ["ENVIRONMENT"] = "testing"
os.environ["SAVE_BACKEND"] = "memory"
os.environ["LOG_TO_FILE"] = "false"

import random

import pytest

from kpiece.core.config.config import Config
from kpiece.domain.models.character import (
    Affinity,
    Character,
    CharacterStats,
    create_starter_character,
)
from kpiece.domain.models.economy import EconomyRules, EconomyState, new_game_state
from kpiece.modules.economy.service import EconomyService
from kpiece.modules.gacha.engine import DRAW_SKILLS, DrawEngine
from kpiece.modules.rarity.table import RarityTier
from kpiece.persistence.store import MemorySaveStore

# Comfortably past every cooldown measured from a zero timestamp.
T0 = 1_700_000_000_000


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"
    Config.load()


# ============================================================================
# TIME
# ============================================================================


class FakeClock:
    """Callable millisecond clock that only moves when told to."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def rules() -> EconomyRules:
    return EconomyRules()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def engine(rng) -> DrawEngine:
    return DrawEngine(rng)


@pytest.fixture
def state(rules) -> EconomyState:
    return new_game_state(rules)


@pytest.fixture
def make_character():
    """
    Factory for characters with chosen tier and level.

    Usage:
        veteran = make_character("vet", RarityTier.NORMAL, level=45)
    """

    def _make(
        character_id: str = "char_test",
        tier: RarityTier = RarityTier.NORMAL,
        level: int = 1,
        name: str = "Test Pirate",
    ) -> Character:
        return Character(
            character_id=character_id,
            name=name,
            tier=tier,
            level=level,
            stats=CharacterStats(hp=100, max_hp=100, attack=20, defense=10, speed=10),
            affinity=Affinity.BLUE,
            skills=DRAW_SKILLS,
        )

    return _make


@pytest.fixture
def make_state(rules):
    """Factory for states with extra characters and balances."""

    def _make(characters=(), berries: float = 0, diamonds: int = 50, crew=None) -> EconomyState:
        starter = create_starter_character()
        return EconomyState(
            berries=berries,
            diamonds=diamonds,
            characters=[starter, *characters],
            crew=[starter.id] if crew is None else crew,
        )

    return _make


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def memory_store() -> MemorySaveStore:
    return MemorySaveStore()


@pytest.fixture
def mock_notifier(mocker):
    """
    Notifier double.

    Uses: service tests asserting on player-facing messages
    """
    notifier = mocker.MagicMock()
    notifier.notify = mocker.MagicMock()
    return notifier


@pytest.fixture
def service(state, rules, engine, memory_store, mock_notifier, clock) -> EconomyService:
    return EconomyService(
        state=state,
        rules=rules,
        engine=engine,
        store=memory_store,
        notifier=mock_notifier,
        clock=clock,
    )
