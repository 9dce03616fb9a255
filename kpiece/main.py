"""
KPiece - Application Entry Point
================================

Bootstrap
---------
- Config validation
- Logging setup
- Balance config (ConfigManager) and EconomyRules
- Save store and state restore (or new game)
- EconomyService and AccrualClock
- Graceful shutdown on SIGINT/SIGTERM (final save)
"""

from __future__ import annotations

import asyncio
import random
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from kpiece.core.config.config import Config
from kpiece.core.config.manager import ConfigManager
from kpiece.core.logging.logger import get_logger, setup_logging, shutdown_logging
from kpiece.domain.models.character import StatGrowth
from kpiece.domain.models.economy import EconomyRules
from kpiece.modules.accrual.clock import AccrualClock
from kpiece.modules.economy.notifications import LoggingNotifier
from kpiece.modules.economy.service import EconomyService
from kpiece.modules.gacha.engine import DrawEngine
from kpiece.persistence.store import SaveStore, build_save_store, load_or_create_state

logger = get_logger(__name__)


# ============================================================================
# Rules
# ============================================================================


def build_rules() -> EconomyRules:
    """Read `economy.*` balance values from ConfigManager."""
    get = ConfigManager.get
    return EconomyRules(
        chest_interval_ms=int(get("economy.chest.interval_ms", 60_000)),
        chest_base_reward=int(get("economy.chest.base_reward", 100)),
        free_draw_interval_ms=int(get("economy.draw.free_interval_ms", 300_000)),
        draw_cost=int(get("economy.draw.diamond_cost", 10)),
        crew_max_size=int(get("economy.crew.max_size", 5)),
        level_cost_unit=int(get("economy.progression.cost_per_level", 100)),
        starting_berries=int(get("economy.starting.berries", 0)),
        starting_diamonds=int(get("economy.starting.diamonds", 50)),
        growth=StatGrowth(
            hp=int(get("economy.progression.hp_per_level", 10)),
            attack=int(get("economy.progression.attack_per_level", 2)),
            defense=int(get("economy.progression.defense_per_level", 1)),
            speed=int(get("economy.progression.speed_per_level", 1)),
        ),
    )


# ============================================================================
# Application Bootstrap
# ============================================================================


@dataclass
class Application:
    service: EconomyService
    clock: AccrualClock
    store: SaveStore


async def build_application(
    config_dir: Optional[Path] = None,
    store: Optional[SaveStore] = None,
) -> Application:
    """Initialize every component; nothing is running yet when this returns."""
    logger.info("========== KPIECE INITIALIZATION START ==========")

    try:
        Config.validate()
        logger.info("✓ Configuration validated", extra=Config.get_config_summary())
    except Exception as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        raise

    ConfigManager.load(config_dir)
    rules = build_rules()
    logger.info("✓ Balance rules loaded", extra={"crew_max_size": rules.crew_max_size})

    store = store or build_save_store()
    try:
        state = await load_or_create_state(store, rules)
        logger.info("✓ Economy state ready")
    except Exception as exc:
        logger.critical(f"Economy state restore failed: {exc}", exc_info=True)
        await store.close()
        raise

    engine = DrawEngine(random.Random(Config.RNG_SEED))
    service = EconomyService(
        state=state,
        rules=rules,
        engine=engine,
        store=store,
        notifier=LoggingNotifier(),
        logger=get_logger("kpiece.modules.economy.service"),
    )
    await service.save()
    clock = AccrualClock(service, interval_ms=Config.ACCRUAL_INTERVAL_MS)
    logger.info("✓ Economy service initialized")

    logger.info("========== INITIALIZED SUCCESSFULLY ==========")
    return Application(service=service, clock=clock, store=store)


# ============================================================================
# Application Shutdown
# ============================================================================


async def _shutdown(app: Optional[Application]) -> None:
    logger.info("========== KPIECE SHUTDOWN START ==========")
    if app is not None:
        await app.clock.stop()
        logger.info("✓ Accrual clock stopped")

        if await app.service.save():
            logger.info("✓ Final save written")
        else:
            logger.error("Final save failed; progress since the last save is lost")

        await app.store.close()
        logger.info("✓ Save store closed")
    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Application Entrypoint
# ============================================================================


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            logger.debug(f"{sig.name} handler not supported on this platform")


async def run() -> None:
    """
    Lifecycle:
        1. Build the application
        2. Start passive income
        3. Wait for SIGINT/SIGTERM
        4. Stop, save, close
    """
    app: Optional[Application] = None
    stop = asyncio.Event()

    try:
        app = await build_application()
        _install_signal_handlers(stop)
        app.clock.start()
        logger.info("KPiece economy running; press Ctrl+C to stop")
        await stop.wait()
    finally:
        await _shutdown(app)


def main() -> None:
    setup_logging()
    exit_code = 0
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Manual shutdown via keyboard interrupt.")
    except Exception as exc:
        logger.critical(f"Fatal startup error: {exc}", exc_info=True)
        exit_code = 1
    finally:
        shutdown_logging()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
