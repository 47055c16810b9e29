"""Rectangular pre-filter for radius searches."""

import math
from dataclasses import dataclass

MILES_PER_DEGREE_LATITUDE = 69.0
# Half-width covering every longitude; used when the circle reaches a pole.
MAX_LONGITUDE_DELTA = 180.0
_COSINE_EPSILON = 1e-12


@dataclass(frozen=True, slots=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float


def bounding_box(latitude: float, longitude: float, radius_miles: float) -> BoundingBox:
    """Approximate a circle of ``radius_miles`` around a point by a rectangle.

    Coarse by construction: listings near the corners fall outside the circle
    but inside the box. Callers must not use it for distance ordering.
    """

    lat_delta = radius_miles / MILES_PER_DEGREE_LATITUDE

    cosine = math.cos(math.radians(latitude))
    if abs(cosine) < _COSINE_EPSILON:
        lon_delta = MAX_LONGITUDE_DELTA
    else:
        lon_delta = min(
            radius_miles / (MILES_PER_DEGREE_LATITUDE * abs(cosine)),
            MAX_LONGITUDE_DELTA,
        )

    return BoundingBox(
        lat_min=max(latitude - lat_delta, -90.0),
        lat_max=min(latitude + lat_delta, 90.0),
        lon_min=longitude - lon_delta,
        lon_max=longitude + lon_delta,
    )
