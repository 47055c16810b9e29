"""Test fixtures for Taskiq, the async runtime, and the listing engine."""

import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

os.environ["TASKIQ_TESTING"] = "1"
os.environ["CACHE_BACKEND"] = "memory"

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest

from listing_engine.cache import MemoryKeyValueCache
from listing_engine.services.detail_cache import DetailCache
from listing_engine.services.listing_service import ListingEngine
from listing_engine.services.view_counter import ViewCounter
from listing_engine.taskiq_app.broker import broker
from tests.fakes import FakeListingRepository


@pytest.fixture
async def init_taskiq() -> AsyncIterator[None]:
    """Initialize broker per test when using InMemoryBroker."""

    await broker.startup()
    yield
    await broker.shutdown()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def repository() -> FakeListingRepository:
    return FakeListingRepository()


@pytest.fixture
def cache_backend() -> MemoryKeyValueCache:
    return MemoryKeyValueCache()


@pytest.fixture
def engine(
    repository: FakeListingRepository, cache_backend: MemoryKeyValueCache
) -> ListingEngine:
    return ListingEngine(
        repository,
        DetailCache(cache_backend),
        ViewCounter(repository.increment_views),
    )
