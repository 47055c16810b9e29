"""HTTP routes for listing search and retrieval."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request

from listing_engine.services.analytics import AnalyticsView
from listing_engine.services.formatting import ListingDetail, ListingSummary
from listing_engine.services.listing_service import ListingEngine
from listing_engine.services.search import SearchResult

router = APIRouter(prefix="/listings", tags=["listings"])

ViewerId = Annotated[str | None, Header(alias="X-Viewer-Id")]


def get_listing_engine(request: Request) -> ListingEngine:
    """Return the engine built during application startup."""

    return request.app.state.listing_engine


Engine = Annotated[ListingEngine, Depends(get_listing_engine)]


@router.get("", response_model=SearchResult)
async def search_listings(request: Request, engine: Engine) -> SearchResult:
    """Search listings; every query parameter is a filter or paging option."""

    params: dict[str, object] = dict(request.query_params)
    for tag_field in ("features", "amenities"):
        values = request.query_params.getlist(tag_field)
        if len(values) > 1:
            params[tag_field] = values
    return await engine.search(params)


@router.get("/slug/{slug}", response_model=ListingDetail)
async def get_listing_by_slug(
    slug: str, engine: Engine, viewer_id: ViewerId = None
) -> ListingDetail:
    return await engine.get_detail_by_slug(slug, viewer_id)


@router.get("/{listing_id}", response_model=ListingDetail)
async def get_listing(
    listing_id: int, engine: Engine, viewer_id: ViewerId = None
) -> ListingDetail:
    return await engine.get_detail(listing_id, viewer_id)


@router.get("/{listing_id}/similar", response_model=list[ListingSummary])
async def get_similar_listings(
    listing_id: int,
    engine: Engine,
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> list[ListingSummary]:
    return await engine.get_similar(listing_id, limit)


@router.get("/{listing_id}/analytics", response_model=AnalyticsView)
async def get_listing_analytics(listing_id: int, engine: Engine) -> AnalyticsView:
    return await engine.get_analytics(listing_id)
