"""
AccrualClock: passive income ticks for KPiece.

Purpose
-------
Credit the player's income rate once per interval for as long as the game
runs, through the same service lock as player transactions.

Design Decisions
----------------
- One background asyncio task; `start()` is idempotent.
- Each tick calls `EconomyService.accrue()`, so ticks and player actions
  never interleave inside a transaction.
- Error isolation: a failing tick is logged and counted, the loop keeps going.
- Fixed-rate schedule against `loop.time()` deadlines: the first credit
  happens one interval after start, and slow ticks (saves) do not shift
  later ones. Time spent offline is not credited.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import Logger
from typing import TYPE_CHECKING, Any, Optional

from kpiece.core.logging.logger import get_logger

if TYPE_CHECKING:
    from kpiece.modules.economy.reducer import TransactionResult
    from kpiece.modules.economy.service import EconomyService


@dataclass(slots=True)
class AccrualMetrics:
    ticks: int = 0
    errors: int = 0


class AccrualClock:
    """
    Drives `EconomyService.accrue()` on a fixed period.

    Examples
    --------
    >>> clock = AccrualClock(service, interval_ms=1000)
    >>> clock.start()
    >>> ...
    >>> await clock.stop()
    """

    def __init__(
        self,
        service: EconomyService,
        interval_ms: int = 1000,
        logger: Optional[Logger] = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._service = service
        self._interval_s = interval_ms / 1000
        self._task: Optional[asyncio.Task[Any]] = None
        self.metrics = AccrualMetrics()
        self.log = logger or get_logger(__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the tick loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="kpiece-accrual-clock")
        self.log.info(
            "Accrual clock started",
            extra={"interval_ms": int(self._interval_s * 1000)},
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.log.info(
            "Accrual clock stopped",
            extra={"ticks": self.metrics.ticks, "errors": self.metrics.errors},
        )

    async def tick(self) -> TransactionResult:
        """Apply one accrual now."""
        result = await self._service.accrue()
        self.metrics.ticks += 1
        return result

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            # Fixed-rate: tick duration does not stretch the period
            deadline += self._interval_s
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                await self.tick()
            except Exception as exc:
                self.metrics.errors += 1
                self.log.error(
                    "Accrual tick failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
