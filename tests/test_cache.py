"""Tests for key-value cache backends."""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from listing_engine.cache import (
    MemoryKeyValueCache,
    RedisKeyValueCache,
    build_cache_backend,
)
from listing_engine.config import Settings
from listing_engine.errors import CacheError


@pytest.mark.anyio
async def test_memory_cache_round_trip_and_prefix_delete() -> None:
    cache = MemoryKeyValueCache()
    await cache.set("listing:1:viewer:a", "one", 60)
    await cache.set("listing:1:viewer:b", "two", 60)
    await cache.set("listing:10:viewer:a", "ten", 60)

    assert await cache.get("listing:1:viewer:a") == "one"
    assert await cache.delete_prefix("listing:1:") == 2
    assert await cache.get("listing:1:viewer:b") is None
    assert await cache.get("listing:10:viewer:a") == "ten"


@pytest.mark.anyio
async def test_memory_cache_expires_entries(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [100.0]
    monkeypatch.setattr("listing_engine.cache.monotonic", lambda: clock[0])
    cache = MemoryKeyValueCache()
    await cache.set("key", "value", 5)

    clock[0] = 104.0
    assert await cache.get("key") == "value"
    clock[0] = 105.0
    assert await cache.get("key") is None


@pytest.mark.anyio
async def test_memory_cache_keeps_entries_without_ttl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    clock = [100.0]
    monkeypatch.setattr("listing_engine.cache.monotonic", lambda: clock[0])
    cache = MemoryKeyValueCache()
    await cache.set("listing-generation:1", "ab12", None)

    clock[0] = 1_000_000.0
    assert await cache.get("listing-generation:1") == "ab12"


@pytest.mark.anyio
async def test_redis_cache_delete_prefix_scans_matching_keys() -> None:
    async def fake_scan_iter(match: str) -> AsyncIterator[str]:
        assert match == "listing:3:*"
        for key in ("listing:3:viewer:anonymous", "listing:3:viewer:u1"):
            yield key

    client = AsyncMock()
    client.scan_iter = fake_scan_iter
    client.delete.return_value = 2

    removed = await RedisKeyValueCache(client).delete_prefix("listing:3:")

    assert removed == 2
    client.delete.assert_awaited_once_with(
        "listing:3:viewer:anonymous", "listing:3:viewer:u1"
    )


@pytest.mark.anyio
async def test_redis_cache_set_uses_ttl() -> None:
    client = AsyncMock()

    await RedisKeyValueCache(client).set("key", "value", 300)

    client.set.assert_awaited_once_with("key", "value", ex=300)


@pytest.mark.anyio
async def test_redis_cache_set_without_ttl_never_expires() -> None:
    client = AsyncMock()

    await RedisKeyValueCache(client).set("key", "value", None)

    client.set.assert_awaited_once_with("key", "value", ex=None)


@pytest.mark.anyio
async def test_redis_cache_wraps_backend_errors() -> None:
    client = AsyncMock()
    client.get.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(CacheError):
        await RedisKeyValueCache(client).get("key")


def test_build_cache_backend_memory() -> None:
    backend = build_cache_backend(Settings(cache_backend="memory"))

    assert isinstance(backend, MemoryKeyValueCache)


def test_build_cache_backend_redis() -> None:
    backend = build_cache_backend(
        Settings(cache_backend="redis", redis_url="redis://cache:6379/1")
    )

    assert isinstance(backend, RedisKeyValueCache)
