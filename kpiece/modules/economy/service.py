"""
EconomyService - single writer for a player's economy
=====================================================

Handles:
- Serializing every transaction and accrual tick under one asyncio.Lock
- Running the pure reducer and committing its result (copy-then-swap)
- Best-effort persistence after every committed change
- Player notifications and subscriber callbacks for every transaction

All rule decisions live in the domain model and reducer. This service owns
the state, the clock and the collaborators, nothing more.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import inspect
import time
from typing import Any, Callable, List, Optional

from kpiece.core.exceptions import PersistenceError
from kpiece.core.logging.logger import LogContext, get_logger
from kpiece.domain.models.economy import EconomyRules, EconomyState
from kpiece.modules.economy.notifications import Notifier, build_notification
from kpiece.modules.economy.reducer import (
    Accrue,
    Action,
    Draw,
    LevelUp,
    OpenChest,
    SetCrew,
    TransactionResult,
    reduce,
)
from kpiece.modules.gacha.engine import DrawEngine
from kpiece.modules.shared.base_service import BaseService
from kpiece.persistence.codec import encode_state
from kpiece.persistence.store import SaveStore

Subscriber = Callable[[TransactionResult], Any]
Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


class EconomyService(BaseService):
    """
    Owns one EconomyState and applies transactions to it one at a time.

    Every public transaction returns a `TransactionResult`; domain rule
    violations come back as `ok=False` results rather than exceptions.
    Results handed out (return values and subscriber callbacks) carry a
    snapshot, so callers never hold the live state.

    Args:
        state: Initial state (from the save store or a new game)
        rules: Balance rules
        engine: Draw engine
        store: Save store; None disables persistence
        notifier: Receives player-facing messages; None disables them
        clock: Returns epoch milliseconds
        logger: Structured logger
    """

    def __init__(
        self,
        state: EconomyState,
        rules: EconomyRules,
        engine: DrawEngine,
        store: Optional[SaveStore] = None,
        notifier: Optional[Notifier] = None,
        clock: Clock = wall_clock_ms,
        logger=None,
    ) -> None:
        super().__init__(logger or get_logger(__name__))
        self._state = state
        self._rules = rules
        self._engine = engine
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._lock = asyncio.Lock()
        self._subscribers: List[Subscriber] = []

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def rules(self) -> EconomyRules:
        return self._rules

    def snapshot(self) -> EconomyState:
        """Deep copy of the current state."""
        return self._state.snapshot()

    def chest_remaining_ms(self) -> int:
        return self._rules.chest_gate.remaining_ms(self._clock(), self._state.last_chest_open_ms)

    def free_draw_remaining_ms(self) -> int:
        return self._rules.free_draw_gate.remaining_ms(
            self._clock(), self._state.last_free_draw_ms
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for every transaction result, failed ones included.

        Returns:
            A function that removes the callback
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def open_chest(self) -> TransactionResult:
        return await self.execute(OpenChest())

    async def draw(self, is_free: bool = False, sample: Optional[float] = None) -> TransactionResult:
        return await self.execute(Draw(is_free=is_free, sample=sample))

    async def level_up(self, character_id: str, levels: int = 1) -> TransactionResult:
        return await self.execute(LevelUp(character_id=character_id, levels=levels))

    async def set_crew(self, character_id: str, selected: bool) -> TransactionResult:
        return await self.execute(SetCrew(character_id=character_id, selected=selected))

    async def accrue(self) -> TransactionResult:
        return await self.execute(Accrue())

    async def execute(self, action: Action) -> TransactionResult:
        """
        Apply and persist one action under the lock, then notify and publish.

        Args:
            action: Reducer action

        Returns:
            TransactionResult carrying a snapshot of the resulting state

        Subscribers run after the lock is released, so they may call back
        into the service (save, chained transactions).
        """
        async with LogContext(action=action.name, component="economy"):
            async with self._lock:
                now_ms = self._clock()
                result = reduce(self._state, action, now_ms, self._engine, self._rules)

                if result.ok:
                    self._state = result.state
                    self._log_commit(action, result)
                    await self._persist(action.name)
                else:
                    self.log_rejection(action.name, result.error)

                public = dataclasses.replace(
                    result,
                    state=self._state.snapshot(),
                    value=copy.deepcopy(result.value),
                )
            self._notify(public)
            await self._publish(public)
            return public

    async def save(self) -> bool:
        """Persist the current state now. Returns False if the save failed."""
        async with self._lock:
            return await self._persist("save")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _log_commit(self, action: Action, result: TransactionResult) -> None:
        state = result.state
        if isinstance(action, Accrue):
            self.log.debug(
                "Income accrued",
                extra={"amount": result.value, "berries": state.berries},
            )
            return

        context = {"berries": state.berries, "diamonds": state.diamonds}
        if isinstance(action, OpenChest):
            context["reward"] = result.value
        elif isinstance(action, Draw):
            context.update(
                character_id=result.value.id,
                tier=result.value.tier.code,
                is_free=action.is_free,
                income_rate=state.income_rate,
            )
        elif isinstance(action, LevelUp):
            context.update(
                character_id=action.character_id,
                levels_requested=action.levels,
                levels_granted=result.value.levels_granted,
                cost=result.value.cost,
            )
        elif isinstance(action, SetCrew):
            context.update(
                character_id=action.character_id,
                selected=action.selected,
                changed=result.value,
            )
        self.log_operation(action.name, **context)

    async def _persist(self, operation: str) -> bool:
        if self._store is None:
            return True
        try:
            await self._store.save(encode_state(self._state))
        except PersistenceError as exc:
            self.log.warning(
                f"Save failed after {operation}; state kept in memory",
                extra={
                    "operation": operation,
                    "error_code": exc.error_code,
                    "error_details": exc.details,
                },
            )
            return False
        return True

    def _notify(self, result: TransactionResult) -> None:
        if self._notifier is None:
            return
        notification = build_notification(result)
        if notification is None:
            return
        try:
            self._notifier.notify(notification)
        except Exception as exc:
            self.log_error("notify", exc, title=notification.title)

    async def _publish(self, result: TransactionResult) -> None:
        for callback in list(self._subscribers):
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                self.log_error(
                    "publish",
                    exc,
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                )
