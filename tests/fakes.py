"""In-memory collaborators and record factories for engine tests."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from listing_engine.criteria import Criteria, SearchOptions
from listing_engine.db.repositories import (
    ListingInsert,
    ListingRecord,
    PriceChangeRecord,
    SimilarityQuery,
)
from listing_engine.errors import CacheError, RepositoryError
from listing_engine.geo import BoundingBox

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_record(listing_id: int = 1, **overrides: Any) -> ListingRecord:
    values: dict[str, Any] = {
        "id": listing_id,
        "slug": f"listing-{listing_id}",
        "title": f"Listing {listing_id}",
        "description": "Bright family home",
        "property_type": "HOUSE",
        "listing_type": "SALE",
        "status": "ACTIVE",
        "price": Decimal("500000"),
        "bedrooms": 3,
        "bathrooms": 2,
        "floor_area": 2000,
        "lot_size": None,
        "year_built": 2005,
        "parking_spaces": 2,
        "hoa_fee": None,
        "tax_amount": None,
        "address": f"{listing_id} Main Street",
        "city": "Austin",
        "state": "TX",
        "postal_code": "78701",
        "neighborhood": "Downtown",
        "latitude": Decimal("30.2672"),
        "longitude": Decimal("-97.7431"),
        "features": ["garage"],
        "amenities": ["pool"],
        "images": [{"url": f"https://img.example.com/{listing_id}/1.jpg"}],
        "videos": [],
        "documents": [],
        "virtual_tours": [],
        "agent_id": "agent-1",
        "agency_id": "agency-1",
        "view_count": 0,
        "created_at": BASE_TIME + timedelta(days=listing_id),
        "updated_at": BASE_TIME + timedelta(days=listing_id),
    }
    values.update(overrides)
    return ListingRecord(**values)


def _in_range(value: Any, minimum: Any, maximum: Any) -> bool:
    if value is None:
        return minimum is None and maximum is None
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


class FakeListingRepository:
    """Dictionary-backed ``ListingRepository`` that records every call."""

    def __init__(self, records: list[ListingRecord] | None = None) -> None:
        self.records: dict[int, ListingRecord] = {}
        self.favorites: set[tuple[int, str]] = set()
        self.calls: Counter[str] = Counter()
        self.error: Exception | None = None
        for record in records or []:
            self.add(record)

    def add(self, record: ListingRecord) -> ListingRecord:
        self.records[record.id] = record
        return record

    def _check(self, name: str) -> None:
        self.calls[name] += 1
        if self.error is not None:
            raise self.error

    def _matches(
        self,
        record: ListingRecord,
        criteria: Criteria,
        bbox: BoundingBox | None,
        exclude_inactive: bool,
    ) -> bool:
        if criteria.status is not None:
            if record.status != criteria.status:
                return False
        elif exclude_inactive and record.status == "INACTIVE":
            return False
        if criteria.property_type and record.property_type != criteria.property_type:
            return False
        if criteria.agent_id and record.agent_id != criteria.agent_id:
            return False
        if criteria.city and criteria.city.lower() not in record.city.lower():
            return False
        if not _in_range(record.price, criteria.price.minimum, criteria.price.maximum):
            return False
        if bbox is not None:
            if record.latitude is None or record.longitude is None:
                return False
            if not bbox.lat_min <= float(record.latitude) <= bbox.lat_max:
                return False
            if not bbox.lon_min <= float(record.longitude) <= bbox.lon_max:
                return False
        return True

    def _search(
        self,
        criteria: Criteria,
        bbox: BoundingBox | None,
        exclude_inactive: bool,
    ) -> list[ListingRecord]:
        return [
            record
            for record in self.records.values()
            if self._matches(record, criteria, bbox, exclude_inactive)
        ]

    async def count(
        self, criteria: Criteria, bbox: BoundingBox | None, *, exclude_inactive: bool
    ) -> int:
        self._check("count")
        return len(self._search(criteria, bbox, exclude_inactive))

    async def find(
        self,
        criteria: Criteria,
        bbox: BoundingBox | None,
        options: SearchOptions,
        *,
        exclude_inactive: bool,
    ) -> list[ListingRecord]:
        self._check("find")
        matches = sorted(
            self._search(criteria, bbox, exclude_inactive),
            key=lambda r: (getattr(r, options.sort_by), r.id),
            reverse=options.sort_order == "desc",
        )
        return matches[options.offset : options.offset + options.limit]

    async def find_by_id(self, listing_id: int) -> ListingRecord | None:
        self._check("find_by_id")
        return self.records.get(listing_id)

    async def find_id_by_slug(self, slug: str) -> int | None:
        self._check("find_id_by_slug")
        return next((r.id for r in self.records.values() if r.slug == slug), None)

    async def find_similar(self, query: SimilarityQuery) -> list[ListingRecord]:
        self._check("find_similar")
        self.last_similarity_query = query
        return [r for r in self.records.values() if r.id != query.listing_id]

    async def is_favorited(self, listing_id: int, user_id: str) -> bool:
        self._check("is_favorited")
        return (listing_id, user_id) in self.favorites

    async def toggle_favorite(self, listing_id: int, user_id: str) -> bool:
        self._check("toggle_favorite")
        key = (listing_id, user_id)
        record = self.records[listing_id]
        if key in self.favorites:
            self.favorites.remove(key)
            record.counts.favorites -= 1
            return False
        self.favorites.add(key)
        record.counts.favorites += 1
        return True

    async def create(self, row: ListingInsert) -> ListingRecord:
        self._check("create")
        listing_id = max(self.records, default=0) + 1
        now = datetime.now(UTC)
        return self.add(
            ListingRecord(
                id=listing_id,
                view_count=0,
                created_at=now,
                updated_at=now,
                **_insert_values(row),
            )
        )

    async def update(
        self, listing_id: int, changes: Mapping[str, object]
    ) -> ListingRecord | None:
        self._check("update")
        record = self.records.get(listing_id)
        if record is None:
            return None
        history = list(record.price_history)
        new_price = changes.get("price")
        if new_price is not None and new_price != record.price:
            history.insert(
                0,
                PriceChangeRecord(
                    old_price=record.price,
                    new_price=Decimal(str(new_price)),
                    changed_at=datetime.now(UTC),
                ),
            )
        updated = replace(
            record,
            **dict(changes),
            price_history=history,
            updated_at=datetime.now(UTC),
        )
        return self.add(updated)

    async def delete(self, listing_id: int) -> bool:
        self._check("delete")
        return self.records.pop(listing_id, None) is not None

    async def increment_views(self, listing_id: int) -> None:
        self._check("increment_views")
        self.records[listing_id].view_count += 1


def _insert_values(row: ListingInsert) -> dict[str, Any]:
    return {name: getattr(row, name) for name in row.__dataclass_fields__}


class FailingKeyValueCache:
    """Backend whose every operation fails like an unreachable Redis."""

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()

    async def get(self, key: str) -> str | None:
        self.calls["get"] += 1
        raise CacheError("redis unavailable")

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        self.calls["set"] += 1
        raise CacheError("redis unavailable")

    async def delete_prefix(self, prefix: str) -> int:
        self.calls["delete_prefix"] += 1
        raise CacheError("redis unavailable")

    async def close(self) -> None:
        return None


__all__ = [
    "BASE_TIME",
    "FailingKeyValueCache",
    "FakeListingRepository",
    "RepositoryError",
    "make_record",
]
