"""
Transaction notifications.

Turns committed transaction results into short player-facing messages and
hands them to a `Notifier`. Success texts are built here; failure texts come
from the exception template registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from kpiece.core.logging.logger import get_logger
from kpiece.domain.exceptions.registry import format_exception
from kpiece.modules.economy.reducer import (
    Accrue,
    Draw,
    LevelUp,
    OpenChest,
    SetCrew,
    TransactionResult,
)

NOTIFICATION_LOGGER = "kpiece.notifications"

LEVEL_SUCCESS = "success"
LEVEL_ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """
    A message for the player.

    Attributes
    ----------
    level : str
        "success" or "error"
    title : str
    message : str
    help_text : Optional[str]
    """

    level: str
    title: str
    message: str
    help_text: Optional[str] = None


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Writes notifications to the `kpiece.notifications` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or get_logger(NOTIFICATION_LOGGER)

    def notify(self, notification: Notification) -> None:
        level = logging.INFO if notification.level == LEVEL_SUCCESS else logging.WARNING
        self.log.log(
            level,
            f"{notification.title}: {notification.message}",
            extra={
                "notification_level": notification.level,
                "help_text": notification.help_text,
            },
        )


def build_notification(result: TransactionResult) -> Optional[Notification]:
    """
    Message for a transaction result, or None when there is nothing to say.

    Accrual ticks and crew no-ops are silent.
    """
    if not result.ok:
        rendered = format_exception(result.error)
        return Notification(
            level=LEVEL_ERROR,
            title=rendered["title"],
            message=rendered["description"],
            help_text=rendered["help_text"],
        )

    action = result.action
    if isinstance(action, OpenChest):
        return Notification(LEVEL_SUCCESS, "Treasure Chest", f"+{result.value:,} Berries!")

    if isinstance(action, Draw):
        character = result.value
        return Notification(
            LEVEL_SUCCESS,
            "New Recruit",
            f"New character obtained: {character.name} ({character.tier.code})!",
        )

    if isinstance(action, LevelUp):
        outcome = result.value
        return Notification(
            LEVEL_SUCCESS,
            "Level Up",
            f"{outcome.character.name} upgraded by {outcome.levels_granted} level(s)!",
        )

    if isinstance(action, SetCrew):
        if not result.value:
            return None
        name = result.state.get_character(action.character_id).name
        if action.selected:
            return Notification(LEVEL_SUCCESS, "Crew", f"{name} joined the crew!")
        return Notification(LEVEL_SUCCESS, "Crew", f"{name} left the crew.")

    if isinstance(action, Accrue):
        return None

    return None
