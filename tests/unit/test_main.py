"""
Unit tests for application bootstrap and shutdown.

Test Coverage
-------------
- build_application wires a working service from config and a store
- Startup writes an initial save
- Shutdown stops the clock, saves and closes the store
"""

import pytest

from kpiece.core.config.manager import ConfigManager
from kpiece.main import _shutdown, build_application
from kpiece.persistence import MemorySaveStore, decode_state


@pytest.fixture(autouse=True)
def reset_config_manager():
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.mark.unit
class TestApplicationLifecycle:
    """Composition root."""

    @pytest.mark.asyncio
    async def test_build_application_new_game(self, tmp_path):
        """An empty store starts a new game and saves it immediately."""
        # Arrange
        store = MemorySaveStore()

        # Act
        app = await build_application(config_dir=tmp_path, store=store)

        # Assert
        assert app.store is store
        assert app.clock.running is False
        assert app.service.snapshot().diamonds == 50
        assert store.saves == 1
        assert decode_state(await store.load()).diamonds == 50

    @pytest.mark.asyncio
    async def test_balance_config_reaches_service(self, tmp_path):
        """YAML overrides end up in the service rules."""
        (tmp_path / "economy.yaml").write_text(
            "economy:\n  starting:\n    diamonds: 7\n  crew:\n    max_size: 2\n",
            encoding="utf-8",
        )

        app = await build_application(config_dir=tmp_path, store=MemorySaveStore())

        assert app.service.rules.crew_max_size == 2
        assert app.service.snapshot().diamonds == 7

    @pytest.mark.asyncio
    async def test_shutdown_saves_and_closes(self, tmp_path, mocker):
        """Shutdown stops ticking, writes a final save and closes the store."""
        # Arrange
        store = MemorySaveStore()
        app = await build_application(config_dir=tmp_path, store=store)
        close = mocker.spy(store, "close")
        app.clock.start()

        # Act
        await _shutdown(app)

        # Assert
        assert app.clock.running is False
        assert store.saves >= 2
        close.assert_called_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_application(self):
        """A failed startup still shuts down cleanly."""
        await _shutdown(None)
