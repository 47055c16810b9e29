import pytest

from listing_engine.slug import slugify


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("3BR House — Lovely View!", "3br-house-lovely-view"),
        ("  Sunny   Loft  ", "sunny-loft"),
        ("Lake_Front--Cabin", "lake-front-cabin"),
        ("!!!", ""),
    ],
)
def test_slugify(title: str, expected: str) -> None:
    assert slugify(title) == expected


@pytest.mark.parametrize(
    "title", ["3BR House — Lovely View!", "-a--b-", "Ünïcode Straße 12"]
)
def test_slugify_is_idempotent(title: str) -> None:
    once = slugify(title)

    assert slugify(once) == once
