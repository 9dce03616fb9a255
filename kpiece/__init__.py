"""KPiece: economy and progression core of an idle pirate collector game."""

__version__ = "1.0.0"
