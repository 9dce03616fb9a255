"""Rarity tiers and their balance parameters."""

from .table import ORDERED_TIERS, RarityParams, RarityTier, tier_params, total_weight

__all__ = [
    "RarityTier",
    "RarityParams",
    "ORDERED_TIERS",
    "tier_params",
    "total_weight",
]
