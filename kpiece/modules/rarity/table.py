"""
Rarity table for KPiece characters.

Single source of truth for:
- Tier definitions (codes, display names, colors)
- Draw weights in percent
- Passive income per second granted by one character of the tier
- Level cap per tier

Pure data only. Weights are `Decimal` so cumulative boundaries used by the
draw engine stay exact (50, 80, 95, 99.89, 99.99, 100).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Tuple


# ============================================================================
# TIERS
# ============================================================================


class RarityTier(Enum):
    """
    Character rarity tiers, declared from most to least common.

    Each tier has a short code, display name and a UI color.
    Balance numbers live in the parameter table below.
    """

    NORMAL = ("N", "Normal", 0x6B7280)
    RARE = ("R", "Rare", 0x3B82F6)
    SUPER_RARE = ("SR", "Super Rare", 0xA855F7)
    SUPER_SUPER_RARE = ("SSR", "Super Super Rare", 0xF97316)
    ULTRA_RARE = ("UR", "Ultra Rare", 0xEF4444)
    LEGENDARY = ("L", "Legendary", 0xEAB308)

    def __init__(self, code: str, display_name: str, color: int):
        self.code = code
        self.display_name = display_name
        self.color = color

    @classmethod
    def from_code(cls, code: str) -> "RarityTier":
        """
        Parse a tier code (case-insensitive).

        Raises
        ------
        ValueError
            If the code names no tier.

        Examples
        --------
        >>> RarityTier.from_code("SR") is RarityTier.SUPER_RARE
        True
        """
        if isinstance(code, str):
            normalized = code.strip().upper()
            for tier in cls:
                if tier.code == normalized:
                    return tier
        raise ValueError(f"Unknown rarity code: {code!r}")

    @classmethod
    def get_all_codes(cls) -> List[str]:
        """Get all tier codes in declared order."""
        return [t.code for t in cls]

    @property
    def weight(self) -> Decimal:
        return _TIER_PARAMS[self].weight

    @property
    def income(self) -> float:
        return _TIER_PARAMS[self].income

    @property
    def max_level(self) -> int:
        return _TIER_PARAMS[self].max_level

    def __str__(self) -> str:
        return f"{self.display_name} ({self.code})"


# ============================================================================
# PARAMETERS
# ============================================================================


@dataclass(frozen=True)
class RarityParams:
    """
    Balance numbers for one tier.

    Attributes
    ----------
    weight : Decimal
        Draw probability in percent
    income : float
        Berries per second granted by one character of this tier
    max_level : int
        Level cap
    """

    weight: Decimal
    income: float
    max_level: int


_TIER_PARAMS: Dict[RarityTier, RarityParams] = {
    RarityTier.NORMAL: RarityParams(Decimal("50"), 0.5, 45),
    RarityTier.RARE: RarityParams(Decimal("30"), 1.0, 50),
    RarityTier.SUPER_RARE: RarityParams(Decimal("15"), 2.0, 65),
    RarityTier.SUPER_SUPER_RARE: RarityParams(Decimal("4.89"), 5.0, 75),
    RarityTier.ULTRA_RARE: RarityParams(Decimal("0.1"), 10.0, 100),
    RarityTier.LEGENDARY: RarityParams(Decimal("0.01"), 25.0, 125),
}

# Iteration order for cumulative draw selection. Never derived from dict order.
ORDERED_TIERS: Tuple[RarityTier, ...] = (
    RarityTier.NORMAL,
    RarityTier.RARE,
    RarityTier.SUPER_RARE,
    RarityTier.SUPER_SUPER_RARE,
    RarityTier.ULTRA_RARE,
    RarityTier.LEGENDARY,
)


def tier_params(tier: RarityTier) -> RarityParams:
    """
    Return the balance parameters for a tier.

    Examples
    --------
    >>> tier_params(RarityTier.RARE).max_level
    50
    """
    return _TIER_PARAMS[tier]


def total_weight() -> Decimal:
    """
    Sum of all draw weights, exactly 100.

    Examples
    --------
    >>> total_weight()
    Decimal('100.00')
    """
    return sum((tier_params(t).weight for t in ORDERED_TIERS), Decimal("0"))
