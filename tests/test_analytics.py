from datetime import UTC, datetime, timedelta
from decimal import Decimal

from listing_engine.db.repositories import ListingCounts, PriceChangeRecord
from listing_engine.services.analytics import build_analytics, days_on_market
from listing_engine.services.formatting import price_per_unit_area, to_summary
from tests.fakes import BASE_TIME, make_record


def test_days_on_market_counts_whole_days() -> None:
    now = BASE_TIME + timedelta(days=12, hours=23)

    assert days_on_market(BASE_TIME, now) == 12


def test_days_on_market_treats_naive_timestamps_as_utc() -> None:
    created = datetime(2026, 1, 1, 12, 0)
    now = datetime(2026, 1, 4, 12, 0, tzinfo=UTC)

    assert days_on_market(created, now) == 3


def test_price_per_unit_area_floors() -> None:
    record = make_record(1, price=Decimal("500001"), floor_area=2000)

    assert price_per_unit_area(record) == 250


def test_price_per_unit_area_requires_positive_area() -> None:
    assert price_per_unit_area(make_record(1, floor_area=None)) is None
    assert price_per_unit_area(make_record(1, floor_area=0)) is None


def test_summary_and_analytics_report_the_same_price_per_unit_area() -> None:
    record = make_record(1, price=Decimal("333333"), floor_area=1000)

    summary = to_summary(record)
    analytics = build_analytics(record, now=BASE_TIME + timedelta(days=30))

    assert summary.price_per_unit_area == 333
    assert analytics.performance.price_per_unit_area == 333


def test_build_analytics_aggregates_record() -> None:
    record = make_record(
        1,
        view_count=42,
        counts=ListingCounts(favorites=3, inquiries=2, reviews=1, appointments=4),
        price_history=[
            PriceChangeRecord(Decimal("520000"), Decimal("500000"), BASE_TIME),
        ],
    )
    now = record.created_at + timedelta(days=30)

    view = build_analytics(record, now=now)

    assert view.listing_id == 1
    assert view.views.total == 42
    assert view.views.last_30_days == 0
    assert view.engagement.favorites == 3
    assert view.engagement.appointments == 4
    assert view.engagement.conversion_rate == 0.0
    assert view.performance.days_on_market == 30
    assert view.performance.price_per_unit_area == 250
    assert view.performance.price_changes == 1
    assert view.performance.market_comparison is None
    assert view.generated_at == now
