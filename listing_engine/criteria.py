"""Compile raw listing filters into validated search criteria."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from listing_engine.errors import InvalidGeoFilter, InvalidRange, InvalidSearchRequest
from listing_engine.models.enums import ListingStatus, ListingType, PropertyType

SORT_FIELDS = (
    "created_at",
    "updated_at",
    "price",
    "bedrooms",
    "bathrooms",
    "floor_area",
    "year_built",
    "view_count",
)
DEFAULT_SORT_FIELD = "created_at"
DEFAULT_SORT_ORDER: Literal["desc"] = "desc"
MAX_PAGE_SIZE = 100

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True, slots=True)
class NumericRange:
    """Inclusive range; either bound may be open."""

    minimum: int | Decimal | None = None
    maximum: int | Decimal | None = None

    @property
    def is_open(self) -> bool:
        return self.minimum is None and self.maximum is None


@dataclass(frozen=True, slots=True)
class GeoFilter:
    latitude: float
    longitude: float
    radius_miles: float


@dataclass(frozen=True, slots=True)
class Criteria:
    """Normalized listing filter. Every supported constraint is a field here."""

    property_type: PropertyType | None = None
    listing_type: ListingType | None = None
    status: ListingStatus | None = None
    price: NumericRange = field(default_factory=NumericRange)
    bedrooms: NumericRange = field(default_factory=NumericRange)
    bathrooms: NumericRange = field(default_factory=NumericRange)
    floor_area: NumericRange = field(default_factory=NumericRange)
    year_built: NumericRange = field(default_factory=NumericRange)
    city: str | None = None
    state: str | None = None
    neighborhood: str | None = None
    query: str | None = None
    features: frozenset[str] = frozenset()
    amenities: frozenset[str] = frozenset()
    agent_id: str | None = None
    agency_id: str | None = None
    geo: GeoFilter | None = None


@dataclass(frozen=True, slots=True)
class SearchOptions:
    page: int = 1
    limit: int = 20
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: SortOrder = DEFAULT_SORT_ORDER
    include_inactive: bool = False

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchRequest(BaseModel):
    """Raw search parameters as received from a caller."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    property_type: PropertyType | None = None
    listing_type: ListingType | None = None
    status: ListingStatus | None = None

    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)
    min_bedrooms: int | None = Field(default=None, ge=0)
    max_bedrooms: int | None = Field(default=None, ge=0)
    min_bathrooms: int | None = Field(default=None, ge=0)
    max_bathrooms: int | None = Field(default=None, ge=0)
    min_floor_area: int | None = Field(default=None, ge=0)
    max_floor_area: int | None = Field(default=None, ge=0)
    year_built_from: int | None = None
    year_built_to: int | None = None

    city: str | None = None
    state: str | None = None
    neighborhood: str | None = None
    q: str | None = Field(default=None, max_length=200)
    features: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    agent_id: str | None = None
    agency_id: str | None = None

    latitude: float | None = None
    longitude: float | None = None
    radius: float | None = None

    page: int = Field(default=1, ge=1)
    limit: int | None = Field(default=None, ge=1, le=MAX_PAGE_SIZE)
    sort_by: str | None = None
    sort_order: str | None = None
    include_inactive: bool = False

    @field_validator(
        "city", "state", "neighborhood", "q", "agent_id", "agency_id", mode="before"
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("features", "amenities", mode="before")
    @classmethod
    def _parse_tags(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            raw_items = value.split(",")
        elif isinstance(value, (list, tuple, set, frozenset)):
            raw_items = [str(item) for item in value]
        else:
            raise ValueError("tags must be a comma-separated string or list")

        normalized: list[str] = []
        seen: set[str] = set()
        for raw_item in raw_items:
            tag = raw_item.strip()
            if not tag or tag in seen:
                continue
            seen.add(tag)
            normalized.append(tag)
        return normalized


def parse_search_request(raw: Mapping[str, object]) -> SearchRequest:
    """Validate raw parameters, reporting every offending field at once."""

    try:
        return SearchRequest.model_validate(raw)
    except ValidationError as exc:
        fields = sorted(
            {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        )
        raise InvalidSearchRequest(
            f"Invalid search parameters: {', '.join(fields)}", fields
        ) from exc


def _compile_geo(request: SearchRequest) -> GeoFilter | None:
    parts = {
        "latitude": request.latitude,
        "longitude": request.longitude,
        "radius": request.radius,
    }
    present = [name for name, value in parts.items() if value is not None]
    if not present:
        return None
    if len(present) != len(parts):
        missing = [name for name in parts if name not in present]
        raise InvalidGeoFilter(
            f"Geo filter requires latitude, longitude and radius; missing: "
            f"{', '.join(missing)}",
            missing,
        )

    latitude = float(request.latitude)  # type: ignore[arg-type]
    longitude = float(request.longitude)  # type: ignore[arg-type]
    radius = float(request.radius)  # type: ignore[arg-type]

    offenders: list[str] = []
    if not -90.0 <= latitude <= 90.0:
        offenders.append("latitude")
    if not -180.0 <= longitude <= 180.0:
        offenders.append("longitude")
    if not radius > 0:
        offenders.append("radius")
    if offenders:
        raise InvalidGeoFilter(
            f"Geo filter out of bounds: {', '.join(offenders)}", offenders
        )

    return GeoFilter(latitude=latitude, longitude=longitude, radius_miles=radius)


def _compile_ranges(request: SearchRequest) -> dict[str, NumericRange]:
    bounds = {
        "price": (request.min_price, request.max_price),
        "bedrooms": (request.min_bedrooms, request.max_bedrooms),
        "bathrooms": (request.min_bathrooms, request.max_bathrooms),
        "floor_area": (request.min_floor_area, request.max_floor_area),
        "year_built": (request.year_built_from, request.year_built_to),
    }

    inverted = [
        name
        for name, (low, high) in bounds.items()
        if low is not None and high is not None and low > high
    ]
    if inverted:
        raise InvalidRange(
            f"Minimum exceeds maximum for: {', '.join(inverted)}", inverted
        )

    return {
        name: NumericRange(minimum=low, maximum=high)
        for name, (low, high) in bounds.items()
    }


def compile_options(
    request: SearchRequest, *, default_limit: int = 20
) -> SearchOptions:
    sort_by = request.sort_by if request.sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    sort_order = (request.sort_order or "").lower()
    if sort_order not in ("asc", "desc"):
        sort_order = DEFAULT_SORT_ORDER

    return SearchOptions(
        page=request.page,
        limit=request.limit or default_limit,
        sort_by=sort_by,
        sort_order=sort_order,  # type: ignore[arg-type]
        include_inactive=request.include_inactive,
    )


def compile_search(
    request: SearchRequest | Mapping[str, object], *, default_limit: int = 20
) -> tuple[Criteria, SearchOptions]:
    """Turn a raw filter request into ``(Criteria, SearchOptions)``.

    Raises ``InvalidSearchRequest`` (or its ``InvalidRange`` / ``InvalidGeoFilter``
    subclasses) when the request cannot be compiled. Pure; touches no backend.
    """

    if not isinstance(request, SearchRequest):
        request = parse_search_request(request)

    ranges = _compile_ranges(request)
    geo = _compile_geo(request)

    criteria = Criteria(
        property_type=request.property_type,
        listing_type=request.listing_type,
        status=request.status,
        city=request.city,
        state=request.state,
        neighborhood=request.neighborhood,
        query=request.q,
        features=frozenset(request.features),
        amenities=frozenset(request.amenities),
        agent_id=request.agent_id,
        agency_id=request.agency_id,
        geo=geo,
        **ranges,
    )
    return criteria, compile_options(request, default_limit=default_limit)
