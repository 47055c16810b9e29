"""Tests for the radius bounding box."""

import math

import pytest

from listing_engine.geo import MAX_LONGITUDE_DELTA, bounding_box


def test_bounding_box_at_equator_is_square_in_degrees() -> None:
    box = bounding_box(0.0, 10.0, 69.0)

    assert box.lat_min == pytest.approx(-1.0)
    assert box.lat_max == pytest.approx(1.0)
    assert box.lon_min == pytest.approx(9.0)
    assert box.lon_max == pytest.approx(11.0)


def test_bounding_box_widens_longitude_away_from_equator() -> None:
    box = bounding_box(60.0, -97.0, 69.0)

    assert box.lat_max - box.lat_min == pytest.approx(2.0)
    assert box.lon_max - box.lon_min == pytest.approx(4.0)


def test_bounding_box_contains_center() -> None:
    box = bounding_box(30.2672, -97.7431, 5.0)

    assert box.lat_min < 30.2672 < box.lat_max
    assert box.lon_min < -97.7431 < box.lon_max


def test_bounding_box_near_pole_stays_finite() -> None:
    box = bounding_box(89.9, 0.0, 5.0)

    for value in (box.lat_min, box.lat_max, box.lon_min, box.lon_max):
        assert math.isfinite(value)
    assert box.lat_max <= 90.0
    assert 0.0 < box.lon_max <= MAX_LONGITUDE_DELTA
    assert box.lon_min == -box.lon_max


def test_bounding_box_at_pole_covers_every_longitude() -> None:
    box = bounding_box(90.0, 45.0, 1.0)

    assert box.lon_min == 45.0 - MAX_LONGITUDE_DELTA
    assert box.lon_max == 45.0 + MAX_LONGITUDE_DELTA
    assert box.lat_max == 90.0
