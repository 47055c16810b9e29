"""Listing engine: search, cached details, recommendations, and mutations."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

from listing_engine.cache import build_cache_backend
from listing_engine.config import Settings, get_settings
from listing_engine.criteria import (
    Criteria,
    SearchOptions,
    SearchRequest,
    compile_search,
)
from listing_engine.db.repositories import (
    ListingInsert,
    ListingRecord,
    ListingRepository,
    SqlListingRepository,
)
from listing_engine.db.session import get_sessionmaker
from listing_engine.errors import NotFound, RepositoryError
from listing_engine.geo import bounding_box
from listing_engine.models.enums import ListingStatus
from listing_engine.services.analytics import AnalyticsView, build_analytics
from listing_engine.services.detail_cache import DetailCache
from listing_engine.services.formatting import (
    ListingDetail,
    ListingSummary,
    to_detail,
    to_summary,
)
from listing_engine.services.payloads import ListingCreate, ListingUpdate
from listing_engine.services.permissions import Actor, ensure_can_mutate
from listing_engine.services.search import (
    SearchExecutor,
    SearchResult,
    build_search_result,
)
from listing_engine.services.similarity import DEFAULT_SIMILAR_LIMIT, SimilarityMatcher
from listing_engine.services.view_counter import ViewCounter
from listing_engine.slug import slugify

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "listing"


@asynccontextmanager
async def _repository_call(action: str, **context: object) -> AsyncIterator[None]:
    try:
        yield
    except RepositoryError:
        logger.exception("Error %s %s", action, context)
        raise


class ListingEngine:
    """Entry point for every listing operation.

    Built once per process and shared by request handlers; the detail cache
    is the only mutable state it owns.
    """

    def __init__(
        self,
        repository: ListingRepository,
        detail_cache: DetailCache,
        view_counter: ViewCounter,
        *,
        default_page_size: int = 20,
        similar_limit: int = DEFAULT_SIMILAR_LIMIT,
    ) -> None:
        self._repository = repository
        self._cache = detail_cache
        self._view_counter = view_counter
        self._default_page_size = default_page_size
        self._executor = SearchExecutor(repository)
        self._matcher = SimilarityMatcher(repository, similar_limit)

    async def search(
        self, request: SearchRequest | Mapping[str, object]
    ) -> SearchResult:
        """Compile and run a filtered, paginated listing search."""

        criteria, options = compile_search(
            request, default_limit=self._default_page_size
        )
        return await self.search_compiled(criteria, options)

    async def search_compiled(
        self, criteria: Criteria, options: SearchOptions
    ) -> SearchResult:
        bbox = None
        if criteria.geo is not None:
            bbox = bounding_box(
                criteria.geo.latitude,
                criteria.geo.longitude,
                criteria.geo.radius_miles,
            )

        async with _repository_call("searching listings", options=options):
            records, total = await self._executor.execute(criteria, options, bbox)

        return build_search_result([to_summary(r) for r in records], total, options)

    async def list_agent_listings(
        self, agent_id: str, options: SearchOptions | None = None
    ) -> SearchResult:
        options = options or SearchOptions(limit=self._default_page_size)
        return await self.search_compiled(Criteria(agent_id=agent_id), options)

    async def get_detail(
        self, listing_id: int, viewer_id: str | None = None
    ) -> ListingDetail:
        generation = await self._cache.generation(listing_id)
        cached = await self._cache.get(listing_id, viewer_id, generation)
        if cached is not None:
            return cached

        record = await self._fetch(listing_id)
        is_favorited = await self._is_favorited(listing_id, viewer_id)
        view = to_detail(record, is_favorited)
        self._view_counter.record(listing_id)
        await self._cache.put(listing_id, viewer_id, view, generation)
        return view

    async def get_detail_by_slug(
        self, slug: str, viewer_id: str | None = None
    ) -> ListingDetail:
        async with _repository_call("resolving listing slug", slug=slug):
            listing_id = await self._repository.find_id_by_slug(slug)
        if listing_id is None:
            raise NotFound(slug)
        return await self.get_detail(listing_id, viewer_id)

    async def get_similar(
        self, listing_id: int, limit: int | None = None
    ) -> list[ListingSummary]:
        reference = await self._fetch(listing_id)
        async with _repository_call("getting similar listings", listing_id=listing_id):
            matches = await self._matcher.find(reference, limit)
        return [to_summary(match) for match in matches]

    async def get_analytics(self, listing_id: int) -> AnalyticsView:
        record = await self._fetch(listing_id)
        return build_analytics(record)

    async def create(self, payload: ListingCreate, agent: Actor) -> ListingDetail:
        fields = payload.model_dump()
        row = ListingInsert(
            **fields,
            slug=slugify(payload.title) or FALLBACK_SLUG,
            status=ListingStatus.PENDING,
            agent_id=agent.id,
            agency_id=agent.agency_id,
        )
        async with _repository_call("creating listing", agent_id=agent.id):
            record = await self._repository.create(row)

        logger.info("Listing created listing_id=%s agent_id=%s", record.id, agent.id)
        return to_detail(record, is_favorited=False)

    async def update(
        self, listing_id: int, payload: ListingUpdate, actor: Actor
    ) -> ListingDetail:
        existing = await self._fetch(listing_id)
        ensure_can_mutate(actor, existing)

        changes = payload.to_changes()
        if "title" in changes:
            changes["slug"] = slugify(str(changes["title"])) or FALLBACK_SLUG

        record = existing
        if changes:
            async with _repository_call(
                "updating listing", listing_id=listing_id, actor_id=actor.id
            ):
                updated = await self._repository.update(listing_id, changes)
            if updated is None:
                raise NotFound(listing_id)
            record = updated
            await self._cache.invalidate(listing_id)
            logger.info(
                "Listing updated listing_id=%s actor_id=%s", listing_id, actor.id
            )

        is_favorited = await self._is_favorited(listing_id, actor.id)
        return to_detail(record, is_favorited)

    async def delete(self, listing_id: int, actor: Actor) -> None:
        existing = await self._fetch(listing_id)
        ensure_can_mutate(actor, existing)

        async with _repository_call(
            "deleting listing", listing_id=listing_id, actor_id=actor.id
        ):
            deleted = await self._repository.delete(listing_id)
        if not deleted:
            raise NotFound(listing_id)

        await self._cache.invalidate(listing_id)
        logger.info("Listing deleted listing_id=%s actor_id=%s", listing_id, actor.id)

    async def toggle_favorite(self, listing_id: int, user_id: str) -> bool:
        """Flip the user's favorite flag; returns True when now favorited."""

        await self._fetch(listing_id)
        async with _repository_call(
            "toggling favorite", listing_id=listing_id, user_id=user_id
        ):
            favorited = await self._repository.toggle_favorite(listing_id, user_id)
        await self._cache.invalidate(listing_id)
        return favorited

    async def close(self) -> None:
        await self._view_counter.drain()
        await self._cache.close()

    async def _fetch(self, listing_id: int) -> ListingRecord:
        async with _repository_call("getting listing", listing_id=listing_id):
            record = await self._repository.find_by_id(listing_id)
        if record is None:
            raise NotFound(listing_id)
        return record

    async def _is_favorited(self, listing_id: int, viewer_id: str | None) -> bool:
        if not viewer_id:
            return False
        async with _repository_call(
            "checking favorite", listing_id=listing_id, viewer_id=viewer_id
        ):
            return await self._repository.is_favorited(listing_id, viewer_id)


def create_listing_engine(settings: Settings | None = None) -> ListingEngine:
    """Wire the engine from configuration; call once at process start."""

    settings = settings or get_settings()
    repository = SqlListingRepository(get_sessionmaker(settings))

    if settings.view_counter_mode == "queue":
        from listing_engine.taskiq_app.tasks import enqueue_view_increment

        view_counter = ViewCounter(enqueue_view_increment)
    else:
        view_counter = ViewCounter(repository.increment_views)

    detail_cache = DetailCache(
        build_cache_backend(settings), settings.detail_cache_ttl_seconds
    )
    return ListingEngine(
        repository,
        detail_cache,
        view_counter,
        default_page_size=settings.default_page_size,
        similar_limit=settings.similar_listings_limit,
    )
