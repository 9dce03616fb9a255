"""Economy transactions: reducer, service and notifications."""

from .notifications import LoggingNotifier, Notification, Notifier, build_notification
from .reducer import (
    Accrue,
    Action,
    Draw,
    LevelUp,
    OpenChest,
    SetCrew,
    TransactionResult,
    reduce,
)
from .service import EconomyService, wall_clock_ms

__all__ = [
    "Accrue",
    "Action",
    "Draw",
    "LevelUp",
    "OpenChest",
    "SetCrew",
    "TransactionResult",
    "reduce",
    "EconomyService",
    "wall_clock_ms",
    "Notification",
    "Notifier",
    "LoggingNotifier",
    "build_notification",
]
