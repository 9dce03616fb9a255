"""Time gates for chest and free draw rewards."""

from .gate import CooldownGate, is_ready, remaining_ms

__all__ = ["CooldownGate", "is_ready", "remaining_ms"]
