"""Derived per-listing metrics."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel

from listing_engine.db.repositories import ListingRecord
from listing_engine.services.formatting import price_per_unit_area


class ViewStats(BaseModel):
    total: int
    # Requires a visit time-series held outside this engine.
    last_30_days: int = 0


class EngagementStats(BaseModel):
    favorites: int
    inquiries: int
    reviews: int
    appointments: int
    conversion_rate: float = 0.0


class PerformanceStats(BaseModel):
    days_on_market: int
    price_per_unit_area: int | None
    price_changes: int
    market_comparison: float | None = None


class AnalyticsView(BaseModel):
    listing_id: int
    views: ViewStats
    engagement: EngagementStats
    performance: PerformanceStats
    generated_at: datetime


def days_on_market(created_at: datetime, now: datetime) -> int:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return (now - created_at).days


def build_analytics(
    record: ListingRecord, now: datetime | None = None
) -> AnalyticsView:
    """Compute metrics owned by this engine; time-series metrics stay zero/None."""

    now = now or datetime.now(UTC)
    return AnalyticsView(
        listing_id=record.id,
        views=ViewStats(total=record.view_count),
        engagement=EngagementStats(
            favorites=record.counts.favorites,
            inquiries=record.counts.inquiries,
            reviews=record.counts.reviews,
            appointments=record.counts.appointments,
        ),
        performance=PerformanceStats(
            days_on_market=days_on_market(record.created_at, now),
            price_per_unit_area=price_per_unit_area(record),
            price_changes=len(record.price_history),
        ),
        generated_at=now,
    )
