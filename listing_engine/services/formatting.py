"""Summary and detail projections of listing records."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

from listing_engine.db.repositories import (
    PRICE_HISTORY_LIMIT,
    RECENT_REVIEWS_LIMIT,
    ListingRecord,
)


class MediaItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    caption: str | None = None


class ReviewView(BaseModel):
    id: int
    user_id: str
    rating: int
    comment: str | None
    created_at: datetime


class PriceChangeView(BaseModel):
    old_price: float
    new_price: float
    changed_at: datetime


class ListingSummary(BaseModel):
    """Lightweight listing shape used in result lists."""

    id: int
    slug: str
    title: str
    property_type: str
    listing_type: str
    status: str
    price: float
    price_per_unit_area: int | None
    bedrooms: int
    bathrooms: int
    floor_area: int | None
    year_built: int | None
    address: str
    city: str
    state: str
    postal_code: str | None
    neighborhood: str | None
    latitude: float | None
    longitude: float | None
    main_image: str | None
    image_count: int
    has_virtual_tour: bool
    agent_id: str
    agency_id: str | None
    view_count: int
    favorite_count: int
    inquiry_count: int
    created_at: datetime
    updated_at: datetime


class ListingDetail(ListingSummary):
    """Full, viewer-specific listing shape."""

    description: str | None
    lot_size: int | None
    parking_spaces: int | None
    hoa_fee: float | None
    tax_amount: float | None
    features: list[str]
    amenities: list[str]
    images: list[MediaItem]
    videos: list[MediaItem]
    documents: list[MediaItem]
    virtual_tours: list[MediaItem]
    reviews: list[ReviewView]
    price_history: list[PriceChangeView]
    review_count: int
    appointment_count: int
    is_favorited: bool


def _to_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _main_image(images: list[dict[str, Any]]) -> str | None:
    if not images:
        return None
    url = images[0].get("url")
    return str(url) if url else None


def price_per_unit_area(record: ListingRecord) -> int | None:
    """Whole currency units per unit of floor area, rounded down."""

    if not record.floor_area or record.floor_area <= 0:
        return None
    return int(record.price // record.floor_area)


def _summary_fields(record: ListingRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "slug": record.slug,
        "title": record.title,
        "property_type": record.property_type,
        "listing_type": record.listing_type,
        "status": record.status,
        "price": float(record.price),
        "price_per_unit_area": price_per_unit_area(record),
        "bedrooms": record.bedrooms,
        "bathrooms": record.bathrooms,
        "floor_area": record.floor_area,
        "year_built": record.year_built,
        "address": record.address,
        "city": record.city,
        "state": record.state,
        "postal_code": record.postal_code,
        "neighborhood": record.neighborhood,
        "latitude": _to_float(record.latitude),
        "longitude": _to_float(record.longitude),
        "main_image": _main_image(record.images),
        "image_count": len(record.images),
        "has_virtual_tour": bool(record.virtual_tours),
        "agent_id": record.agent_id,
        "agency_id": record.agency_id,
        "view_count": record.view_count,
        "favorite_count": record.counts.favorites,
        "inquiry_count": record.counts.inquiries,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def to_summary(record: ListingRecord) -> ListingSummary:
    return ListingSummary(**_summary_fields(record))


def to_detail(record: ListingRecord, is_favorited: bool) -> ListingDetail:
    """Project a fully loaded record for a single viewer."""

    reviews = sorted(record.reviews, key=lambda r: r.created_at, reverse=True)
    history = sorted(record.price_history, key=lambda p: p.changed_at, reverse=True)

    return ListingDetail(
        **_summary_fields(record),
        description=record.description,
        lot_size=record.lot_size,
        parking_spaces=record.parking_spaces,
        hoa_fee=_to_float(record.hoa_fee),
        tax_amount=_to_float(record.tax_amount),
        features=sorted(set(record.features)),
        amenities=sorted(set(record.amenities)),
        images=[MediaItem.model_validate(item) for item in record.images],
        videos=[MediaItem.model_validate(item) for item in record.videos],
        documents=[MediaItem.model_validate(item) for item in record.documents],
        virtual_tours=[MediaItem.model_validate(item) for item in record.virtual_tours],
        reviews=[
            ReviewView(
                id=review.id,
                user_id=review.user_id,
                rating=review.rating,
                comment=review.comment,
                created_at=review.created_at,
            )
            for review in reviews[:RECENT_REVIEWS_LIMIT]
        ],
        price_history=[
            PriceChangeView(
                old_price=float(change.old_price),
                new_price=float(change.new_price),
                changed_at=change.changed_at,
            )
            for change in history[:PRICE_HISTORY_LIMIT]
        ],
        review_count=record.counts.reviews,
        appointment_count=record.counts.appointments,
        is_favorited=is_favorited,
    )
