"""Weighted-random character draws."""

from .engine import DRAW_SKILLS, DrawEngine, draw_stats, select_tier

__all__ = ["DrawEngine", "DRAW_SKILLS", "draw_stats", "select_tier"]
