"""Per-viewer cache of listing detail views.

Entries are keyed by the listing's current generation. ``invalidate`` moves a
listing to a fresh generation before deleting its entries, so a reader that
fetched the record before the invalidation writes its view under a key no
later reader looks up.
"""

import logging
from uuid import uuid4

from pydantic import ValidationError

from listing_engine.cache import KeyValueCache
from listing_engine.errors import CacheError
from listing_engine.services.formatting import ListingDetail

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
ANONYMOUS_VIEWER = "anonymous"
INITIAL_GENERATION = "0"


def listing_key_prefix(listing_id: int) -> str:
    return f"listing:{listing_id}:"


def generation_key(listing_id: int) -> str:
    # Outside listing_key_prefix so invalidation never deletes it.
    return f"listing-generation:{listing_id}"


def build_detail_cache_key(
    listing_id: int,
    viewer_id: str | None,
    generation: str = INITIAL_GENERATION,
) -> str:
    return (
        f"{listing_key_prefix(listing_id)}gen:{generation}:"
        f"viewer:{viewer_id or ANONYMOUS_VIEWER}"
    )


class DetailCache:
    """TTL cache keyed by (listing id, generation, viewer).

    Backend failures degrade to misses. A ``None`` generation means the
    generation could not be read; reads and writes are then skipped.
    """

    def __init__(
        self, backend: KeyValueCache, ttl_seconds: int = DEFAULT_TTL_SECONDS
    ) -> None:
        self._backend = backend
        self._ttl_seconds = ttl_seconds

    async def generation(self, listing_id: int) -> str | None:
        """Current generation of a listing; read it before loading the record."""

        key = generation_key(listing_id)
        try:
            current = await self._backend.get(key)
        except CacheError:
            logger.warning("Detail cache read failed for key=%s", key, exc_info=True)
            return None
        return current or INITIAL_GENERATION

    async def get(
        self, listing_id: int, viewer_id: str | None, generation: str | None
    ) -> ListingDetail | None:
        if generation is None:
            return None
        key = build_detail_cache_key(listing_id, viewer_id, generation)
        try:
            cached = await self._backend.get(key)
        except CacheError:
            logger.warning("Detail cache read failed for key=%s", key, exc_info=True)
            return None
        if not cached:
            return None

        try:
            return ListingDetail.model_validate_json(cached)
        except ValidationError:
            logger.warning("Discarding unreadable detail cache entry key=%s", key)
            return None

    async def put(
        self,
        listing_id: int,
        viewer_id: str | None,
        view: ListingDetail,
        generation: str | None,
        ttl_seconds: int | None = None,
    ) -> None:
        if generation is None:
            return
        key = build_detail_cache_key(listing_id, viewer_id, generation)
        try:
            await self._backend.set(
                key, view.model_dump_json(), ttl_seconds or self._ttl_seconds
            )
        except CacheError:
            logger.warning("Detail cache write failed for key=%s", key, exc_info=True)

    async def invalidate(self, listing_id: int) -> None:
        """Retire cached details of a listing for every viewer."""

        try:
            await self._backend.set(generation_key(listing_id), uuid4().hex, None)
        except CacheError:
            logger.error(
                "Detail cache generation bump failed for listing_id=%s",
                listing_id,
                exc_info=True,
            )

        prefix = listing_key_prefix(listing_id)
        try:
            removed = await self._backend.delete_prefix(prefix)
        except CacheError:
            logger.error(
                "Detail cache invalidation failed for listing_id=%s",
                listing_id,
                exc_info=True,
            )
            return
        logger.debug(
            "Invalidated %s detail cache entries for listing_id=%s",
            removed,
            listing_id,
        )

    async def close(self) -> None:
        await self._backend.close()
