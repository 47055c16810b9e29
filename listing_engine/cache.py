"""Key-value cache backends used by the listing detail cache."""

from __future__ import annotations

from math import inf
from time import monotonic
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from listing_engine.config import Settings, get_settings
from listing_engine.errors import CacheError


class KeyValueCache(Protocol):
    """Best-effort byte store with TTL and prefix invalidation."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        """Store ``value``; ``ttl_seconds=None`` keeps it until deleted."""
        ...

    async def delete_prefix(self, prefix: str) -> int: ...

    async def close(self) -> None: ...


class RedisKeyValueCache:
    """Redis-backed cache sharing one connection pool per process."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisKeyValueCache:
        return cls(Redis.from_url(redis_url, encoding="utf-8", decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            raise CacheError(f"cache get failed for {key}") from exc
        return str(value) if value else None

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise CacheError(f"cache set failed for {key}") from exc

    async def delete_prefix(self, prefix: str) -> int:
        try:
            keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
            if not keys:
                return 0
            return int(await self._client.delete(*keys))
        except RedisError as exc:
            raise CacheError(f"cache invalidation failed for {prefix}*") from exc

    async def close(self) -> None:
        await self._client.aclose()


class MemoryKeyValueCache:
    """In-process cache with expiry, for tests and single-process runs."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}

    def _purge_expired(self) -> None:
        now = monotonic()
        expired = [key for key, (_, expiry) in self._entries.items() if expiry <= now]
        for key in expired:
            self._entries.pop(key, None)

    async def get(self, key: str) -> str | None:
        self._purge_expired()
        entry = self._entries.get(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        expiry = inf if ttl_seconds is None else monotonic() + ttl_seconds
        self._entries[key] = (value, expiry)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            self._entries.pop(key, None)
        return len(keys)

    async def close(self) -> None:
        self._entries.clear()


def build_cache_backend(settings: Settings | None = None) -> KeyValueCache:
    """Return the backend selected by ``CACHE_BACKEND``."""

    settings = settings or get_settings()
    if settings.cache_backend == "memory":
        return MemoryKeyValueCache()
    return RedisKeyValueCache.from_url(settings.redis_url)
