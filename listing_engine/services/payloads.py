"""Create/update payloads accepted by listing mutations."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from listing_engine.models.enums import ListingStatus, ListingType, PropertyType

# Columns that may be omitted from an update but never set to null.
_REQUIRED_ON_UPDATE = frozenset(
    {
        "title",
        "property_type",
        "listing_type",
        "status",
        "price",
        "bedrooms",
        "bathrooms",
        "address",
        "city",
        "state",
        "features",
        "amenities",
        "images",
        "videos",
        "documents",
        "virtual_tours",
    }
)


class MediaReference(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = Field(min_length=1)
    caption: str | None = None


def _dedupe_tags(value: object) -> object:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return value
    seen: set[str] = set()
    tags: list[str] = []
    for item in value:
        tag = str(item).strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


class ListingCreate(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    property_type: PropertyType
    listing_type: ListingType

    price: Decimal = Field(ge=0)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    floor_area: int | None = Field(default=None, ge=0)
    lot_size: int | None = Field(default=None, ge=0)
    year_built: int | None = None
    parking_spaces: int | None = Field(default=None, ge=0)
    hoa_fee: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal | None = Field(default=None, ge=0)

    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str | None = None
    neighborhood: str | None = None
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)

    features: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    images: list[MediaReference] = Field(default_factory=list)
    videos: list[MediaReference] = Field(default_factory=list)
    documents: list[MediaReference] = Field(default_factory=list)
    virtual_tours: list[MediaReference] = Field(default_factory=list)

    @field_validator("features", "amenities", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> object:
        return _dedupe_tags(value)


class ListingUpdate(BaseModel):
    """Partial update; only fields explicitly provided are written."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    property_type: PropertyType | None = None
    listing_type: ListingType | None = None
    status: ListingStatus | None = None

    price: Decimal | None = Field(default=None, ge=0)
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    floor_area: int | None = Field(default=None, ge=0)
    lot_size: int | None = Field(default=None, ge=0)
    year_built: int | None = None
    parking_spaces: int | None = Field(default=None, ge=0)
    hoa_fee: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal | None = Field(default=None, ge=0)

    address: str | None = Field(default=None, min_length=1)
    city: str | None = Field(default=None, min_length=1)
    state: str | None = Field(default=None, min_length=1)
    postal_code: str | None = None
    neighborhood: str | None = None
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)

    features: list[str] | None = None
    amenities: list[str] | None = None
    images: list[MediaReference] | None = None
    videos: list[MediaReference] | None = None
    documents: list[MediaReference] | None = None
    virtual_tours: list[MediaReference] | None = None

    @field_validator("features", "amenities", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> object:
        return _dedupe_tags(value)

    @model_validator(mode="after")
    def _reject_null_required(self) -> ListingUpdate:
        nulled = sorted(
            name
            for name in self.model_fields_set & _REQUIRED_ON_UPDATE
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def to_changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)
