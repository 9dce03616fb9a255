"""
Cooldown gate for time-gated rewards.

Purpose
-------
Decide whether a time-gated action (treasure chest, free draw) is available,
and how long remains when it is not.

Design Notes
------------
- Pure functions over millisecond epoch integers; the caller supplies `now`.
- Readiness is strict: exactly `interval_ms` after the last use is still
  cooling down. An action is available from `interval_ms + 1` onward.
- A last-use timestamp of 0 means "never used", which is always ready for
  any realistic clock.
"""

from __future__ import annotations

from dataclasses import dataclass

from kpiece.modules.shared.exceptions import NotReadyError


def is_ready(now_ms: int, last_ms: int, interval_ms: int) -> bool:
    """
    Check whether a gated action is available.

    Args:
        now_ms: Current time in epoch milliseconds
        last_ms: Time of last use in epoch milliseconds (0 = never)
        interval_ms: Cooldown length

    Returns:
        True once strictly more than `interval_ms` has elapsed

    Example:
        >>> is_ready(60_000, 0, 60_000)
        False
        >>> is_ready(60_001, 0, 60_000)
        True
    """
    return now_ms - last_ms > interval_ms


def remaining_ms(now_ms: int, last_ms: int, interval_ms: int) -> int:
    """
    Milliseconds left before the action opens, for player messages.

    On the exact boundary the action is still closed, so 1 is reported
    rather than 0.

    Example:
        >>> remaining_ms(30_000, 0, 60_000)
        30000
        >>> remaining_ms(60_000, 0, 60_000)
        1
        >>> remaining_ms(90_000, 0, 60_000)
        0
    """
    elapsed = now_ms - last_ms
    if elapsed > interval_ms:
        return 0
    return max(1, interval_ms - elapsed)


@dataclass(frozen=True)
class CooldownGate:
    """
    Named cooldown with a fixed interval.

    Attributes
    ----------
    name : str
        Action name used in errors ("chest", "free_draw")
    interval_ms : int
        Cooldown length in milliseconds
    """

    name: str
    interval_ms: int

    def is_ready(self, now_ms: int, last_ms: int) -> bool:
        return is_ready(now_ms, last_ms, self.interval_ms)

    def remaining_ms(self, now_ms: int, last_ms: int) -> int:
        return remaining_ms(now_ms, last_ms, self.interval_ms)

    def check(self, now_ms: int, last_ms: int) -> None:
        """
        Raise when the gate is closed.

        Raises:
            NotReadyError: If the cooldown has not elapsed
        """
        if not self.is_ready(now_ms, last_ms):
            raise NotReadyError(self.name, self.remaining_ms(now_ms, last_ms))
