"""Comparable-listing recommendations."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

from listing_engine.db.repositories import (
    ListingRecord,
    ListingRepository,
    SimilarityQuery,
)
from listing_engine.models.enums import ListingStatus

PRICE_TOLERANCE = Decimal("0.2")
DEFAULT_SIMILAR_LIMIT = 6


def price_band(price: Decimal) -> tuple[Decimal, Decimal]:
    spread = price * PRICE_TOLERANCE
    return price - spread, price + spread


def build_similarity_query(reference: ListingRecord, limit: int) -> SimilarityQuery:
    min_price, max_price = price_band(reference.price)
    return SimilarityQuery(
        listing_id=reference.id,
        property_type=reference.property_type,
        min_price=min_price,
        max_price=max_price,
        city=reference.city,
        postal_code=reference.postal_code,
        bedrooms=reference.bedrooms,
        bathrooms=reference.bathrooms,
        limit=limit,
    )


def is_similar(reference: ListingRecord, candidate: ListingRecord) -> bool:
    """Same type, price within 20%, and a shared city, postal code or layout."""

    if candidate.id == reference.id or candidate.status != ListingStatus.ACTIVE:
        return False
    if candidate.property_type != reference.property_type:
        return False

    min_price, max_price = price_band(reference.price)
    if not min_price <= candidate.price <= max_price:
        return False

    same_city = reference.city is not None and candidate.city == reference.city
    same_postal_code = (
        reference.postal_code is not None
        and candidate.postal_code == reference.postal_code
    )
    same_layout = (
        candidate.bedrooms == reference.bedrooms
        and candidate.bathrooms == reference.bathrooms
    )
    return same_city or same_postal_code or same_layout


def similarity_rank(
    reference: ListingRecord,
) -> Callable[[ListingRecord], tuple[int, float, int]]:
    """Sort key: same city first, then newest first."""

    def key(candidate: ListingRecord) -> tuple[int, float, int]:
        city_rank = 0 if candidate.city == reference.city else 1
        return (city_rank, -candidate.created_at.timestamp(), -candidate.id)

    return key


class SimilarityMatcher:
    def __init__(
        self, repository: ListingRepository, default_limit: int = DEFAULT_SIMILAR_LIMIT
    ) -> None:
        self._repository = repository
        self._default_limit = default_limit

    async def find(
        self, reference: ListingRecord, limit: int | None = None
    ) -> list[ListingRecord]:
        query = build_similarity_query(reference, limit or self._default_limit)
        candidates = await self._repository.find_similar(query)
        matches = [c for c in candidates if is_similar(reference, c)]
        matches.sort(key=similarity_rank(reference))
        return matches[: query.limit]
