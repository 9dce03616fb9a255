"""Level-up pricing and application."""

from .ledger import DEFAULT_COST_UNIT, LevelUpOutcome, apply_level_up, level_up_cost

__all__ = ["DEFAULT_COST_UNIT", "LevelUpOutcome", "apply_level_up", "level_up_cost"]
