"""
Save stores for the economy state document.

Purpose
-------
Async transports for the single save document of a player. A store only
moves JSON-compatible dicts; `kpiece.persistence.codec` converts them.

Backends
--------
- MemorySaveStore: in-process dict, for tests and throwaway runs
- FileSaveStore: one JSON file, replaced atomically on every save
- RedisSaveStore: one JSON string under a key (redis.asyncio)

Error Handling
--------------
- Transport failures raise `PersistenceError` (retryable).
- A stored value that is not a JSON object raises `CorruptSaveError`.
- A missing save is not an error: `load()` returns None.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from redis.asyncio.client import Redis as AsyncRedis  # type: ignore[misc]
from redis.exceptions import RedisError

from kpiece.core.config.config import Config, SaveBackend
from kpiece.core.exceptions import ConfigurationError, CorruptSaveError, PersistenceError
from kpiece.core.logging.logger import get_logger
from kpiece.domain.models.economy import EconomyRules, EconomyState, new_game_state
from kpiece.persistence.codec import decode_state

logger = get_logger(__name__)

SaveDocument = Dict[str, Any]


class SaveStore(Protocol):
    async def load(self) -> Optional[SaveDocument]: ...

    async def save(self, document: SaveDocument) -> None: ...

    async def clear(self) -> None: ...

    async def close(self) -> None: ...


def _parse_document(raw: str, source: str) -> SaveDocument:
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptSaveError(f"{source} is not valid JSON: {exc.msg}") from exc
    if not isinstance(document, dict):
        raise CorruptSaveError(f"{source} does not hold a JSON object")
    return document


# ============================================================================
# MEMORY
# ============================================================================


class MemorySaveStore:
    """Keeps the document in memory. `saves` counts successful writes."""

    def __init__(self, document: Optional[SaveDocument] = None) -> None:
        self._document = copy.deepcopy(document)
        self.saves = 0

    async def load(self) -> Optional[SaveDocument]:
        return copy.deepcopy(self._document)

    async def save(self, document: SaveDocument) -> None:
        self._document = copy.deepcopy(document)
        self.saves += 1

    async def clear(self) -> None:
        self._document = None

    async def close(self) -> None:
        return None


# ============================================================================
# FILE
# ============================================================================


class FileSaveStore:
    """
    JSON file store.

    Writes go to a sibling temp file that is fsynced and then moved over the
    target with `os.replace`, so a crash never leaves a half-written save.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._tmp_path = self.path.with_name(self.path.name + ".tmp")

    def _read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(self._tmp_path, self.path)

    def _unlink(self) -> None:
        self.path.unlink(missing_ok=True)
        self._tmp_path.unlink(missing_ok=True)

    async def load(self) -> Optional[SaveDocument]:
        try:
            raw = await asyncio.to_thread(self._read)
        except OSError as exc:
            raise PersistenceError("load", exc) from exc
        if raw is None:
            return None
        return _parse_document(raw, str(self.path))

    async def save(self, document: SaveDocument) -> None:
        payload = json.dumps(document, ensure_ascii=False)
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as exc:
            raise PersistenceError("save", exc) from exc

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(self._unlink)
        except OSError as exc:
            raise PersistenceError("clear", exc) from exc

    async def close(self) -> None:
        return None


# ============================================================================
# REDIS
# ============================================================================


class RedisSaveStore:
    """
    Redis store: the whole document as one JSON string under `key`.

    Args:
        url: Redis connection URL
        key: Key holding the document
        client: Pre-built client (tests); built from `url` on first use otherwise
    """

    def __init__(
        self,
        url: str,
        key: str = "kpiece-game-state",
        client: Optional[AsyncRedis] = None,
        socket_timeout: float = 5.0,
    ) -> None:
        self.url = url
        self.key = key
        self._socket_timeout = socket_timeout
        self._client: Optional[AsyncRedis] = client

    def _get_client(self) -> AsyncRedis:
        if self._client is None:
            self._client = AsyncRedis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=self._socket_timeout,
            )
            logger.info(
                "Redis save store connected",
                extra={
                    "url_scheme": self.url.split("://")[0] if "://" in self.url else "unknown",
                    "key": self.key,
                },
            )
        return self._client

    async def load(self) -> Optional[SaveDocument]:
        try:
            raw = await self._get_client().get(self.key)
        except RedisError as exc:
            raise PersistenceError("load", exc) from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return _parse_document(raw, f"redis key {self.key!r}")

    async def save(self, document: SaveDocument) -> None:
        payload = json.dumps(document, ensure_ascii=False)
        try:
            await self._get_client().set(self.key, payload)
        except RedisError as exc:
            raise PersistenceError("save", exc) from exc

    async def clear(self) -> None:
        try:
            await self._get_client().delete(self.key)
        except RedisError as exc:
            raise PersistenceError("clear", exc) from exc

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except RedisError as exc:
            logger.error(
                "Error during Redis save store shutdown",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )


# ============================================================================
# FACTORY / BOOTSTRAP
# ============================================================================


def build_save_store(backend: Optional[str] = None) -> SaveStore:
    """
    Build the store selected by `SAVE_BACKEND`.

    Raises:
        ConfigurationError: Unknown backend name
    """
    name = (backend or Config.SAVE_BACKEND).lower()
    try:
        selected = SaveBackend(name)
    except ValueError:
        raise ConfigurationError("SAVE_BACKEND", f"unknown backend '{name}'") from None

    if selected is SaveBackend.MEMORY:
        return MemorySaveStore()
    if selected is SaveBackend.REDIS:
        return RedisSaveStore(Config.REDIS_URL, key=Config.SAVE_KEY)
    return FileSaveStore(Config.SAVE_PATH)


async def load_or_create_state(store: SaveStore, rules: EconomyRules) -> EconomyState:
    """
    Load the saved state, or bootstrap a new game when there is no save.

    Raises:
        PersistenceError: The store is unreachable
        CorruptSaveError: The save exists but cannot be decoded
    """
    document = await store.load()
    if document is None:
        logger.info("No save found; starting a new game")
        return new_game_state(rules)

    state = decode_state(document, rules)
    logger.info(
        "Save loaded",
        extra={
            "characters": len(state.characters),
            "berries": state.berries,
            "diamonds": state.diamonds,
            "income_rate": state.income_rate,
        },
    )
    return state
