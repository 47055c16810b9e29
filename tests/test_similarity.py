"""Tests for comparable-listing matching."""

from datetime import timedelta
from decimal import Decimal

import pytest

from listing_engine.services.similarity import (
    SimilarityMatcher,
    build_similarity_query,
    is_similar,
    price_band,
)
from tests.fakes import BASE_TIME, FakeListingRepository, make_record


def test_price_band_is_twenty_percent_either_side() -> None:
    assert price_band(Decimal("10000000")) == (Decimal("8000000"), Decimal("12000000"))


def test_build_similarity_query_carries_reference_attributes() -> None:
    reference = make_record(1, price=Decimal("10000000"), postal_code=None)

    query = build_similarity_query(reference, 4)

    assert query.listing_id == 1
    assert query.min_price == Decimal("8000000")
    assert query.max_price == Decimal("12000000")
    assert query.postal_code is None
    assert query.limit == 4


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, True),
        ({"price": Decimal("8000000")}, True),
        ({"price": Decimal("12000000")}, True),
        ({"price": Decimal("7999999")}, False),
        ({"price": Decimal("12000001")}, False),
        ({"property_type": "CONDO"}, False),
        ({"status": "PENDING"}, False),
        (
            {"city": "Dallas", "postal_code": "75201", "bedrooms": 5},
            False,
        ),
        ({"city": "Dallas", "postal_code": "75201"}, True),
        ({"city": "Dallas", "bedrooms": 5}, True),
    ],
)
def test_is_similar(overrides: dict[str, object], expected: bool) -> None:
    reference = make_record(1, price=Decimal("10000000"))
    candidate = make_record(2, **{"price": Decimal("10000000"), **overrides})

    assert is_similar(reference, candidate) is expected


def test_listing_is_never_similar_to_itself() -> None:
    reference = make_record(1)

    assert is_similar(reference, reference) is False


def test_missing_postal_code_does_not_match_other_missing_postal_codes() -> None:
    reference = make_record(1, postal_code=None)
    candidate = make_record(2, city="Dallas", postal_code=None, bedrooms=5)

    assert is_similar(reference, candidate) is False


@pytest.mark.anyio
async def test_matcher_ranks_same_city_first_then_newest() -> None:
    reference = make_record(1)
    repository = FakeListingRepository(
        [
            reference,
            make_record(
                2, city="Round Rock", created_at=BASE_TIME + timedelta(days=90)
            ),
            make_record(3, created_at=BASE_TIME + timedelta(days=10)),
            make_record(4, created_at=BASE_TIME + timedelta(days=20)),
            make_record(5, status="SOLD"),
        ]
    )

    matches = await SimilarityMatcher(repository).find(reference)

    assert [match.id for match in matches] == [4, 3, 2]


@pytest.mark.anyio
async def test_matcher_applies_limit() -> None:
    reference = make_record(1)
    repository = FakeListingRepository(
        [reference, *(make_record(i) for i in range(2, 12))]
    )

    matches = await SimilarityMatcher(repository, default_limit=6).find(reference)
    limited = await SimilarityMatcher(repository).find(reference, limit=2)

    assert len(matches) == 6
    assert [match.id for match in limited] == [11, 10]
    assert repository.last_similarity_query.limit == 2
