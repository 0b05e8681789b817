"""Keyed store adapters for Glow Pay Gateway.

Merchants, payments and address-usage maps are stored as JSON documents
behind a minimal async interface: ``get`` / ``set`` (optional TTL) /
``set_if_absent`` (atomic claim) / ``delete``. Redis is the production
backend; ``MemoryStore`` keeps the same contract in-process for local
development and tests.
"""

import json
import time
from typing import Any, Protocol

import redis.asyncio as redis

from src.core.config import Settings


class KeyValueStore(Protocol):
    """Async document store used by the service layer."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...

    async def set_if_absent(
        self, key: str, value: Any, ttl_seconds: int | None = None
    ) -> bool:
        """Write only if ``key`` does not exist; True if this call wrote it."""
        ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class RedisStore:
    """JSON documents in Redis.

    Usage:
        store = RedisStore.from_url("redis://localhost:6379")
        await store.set("merchant:m_abc", {...})
    """

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        return cls(
            redis.from_url(
                url,
                encoding="utf-8",
                decode_responses=True,
            )
        )

    async def get(self, key: str) -> Any | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        await self._redis.set(key, json.dumps(value), ex=ttl_seconds)

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        # SET NX EX: a single atomic command
        return bool(await self._redis.set(key, json.dumps(value), ex=ttl_seconds, nx=True))

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


class MemoryStore:
    """In-process dict store with lazy TTL expiry."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._data[key]
            return None
        return raw

    def _put(self, key: str, value: Any, ttl_seconds: int | None) -> None:
        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        # Serialize so callers never share mutable state with the store
        self._data[key] = (json.dumps(value), expires_at)

    async def get(self, key: str) -> Any | None:
        raw = self._live(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        self._put(key, value, ttl_seconds)

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        # Check and write run without suspending, so this is atomic on one loop
        if self._live(key) is not None:
            return False
        self._put(key, value, ttl_seconds)
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        self._data.clear()


def create_store(settings: Settings) -> KeyValueStore:
    """Build the configured store backend.

    Call this once during application startup (lifespan).
    """
    if settings.store_backend == "memory":
        return MemoryStore()
    return RedisStore.from_url(settings.redis_url)
