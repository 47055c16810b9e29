"""Listing table model."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from listing_engine.models.base import Base


class Listing(Base):
    """Real-estate listing published by an agent."""

    __tablename__ = "listings"
    __table_args__ = (
        Index("idx_listings_slug", "slug", unique=True),
        Index("idx_listings_type_status", "property_type", "listing_type", "status"),
        Index("idx_listings_price", "price"),
        Index("idx_listings_city", "city"),
        Index("idx_listings_geo", "latitude", "longitude"),
        Index("idx_listings_agent", "agent_id"),
        Index("idx_listings_created", "created_at"),
        CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        CheckConstraint("bedrooms >= 0", name="ck_listings_bedrooms_non_negative"),
        CheckConstraint("bathrooms >= 0", name="ck_listings_bathrooms_non_negative"),
        CheckConstraint(
            "floor_area IS NULL OR floor_area >= 0",
            name="ck_listings_floor_area_non_negative",
        ),
        CheckConstraint(
            "latitude IS NULL OR (latitude >= -90 AND latitude <= 90)",
            name="ck_listings_latitude_range",
        ),
        CheckConstraint(
            "longitude IS NULL OR (longitude >= -180 AND longitude <= 180)",
            name="ck_listings_longitude_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    property_type: Mapped[str] = mapped_column(String(20), nullable=False)
    listing_type: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="PENDING", server_default="PENDING"
    )

    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    bedrooms: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    bathrooms: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    floor_area: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lot_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year_built: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parking_spaces: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hoa_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    tax_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(100), nullable=True)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)

    features: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default="{}"
    )
    amenities: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default="{}"
    )
    images: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    videos: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    documents: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )
    virtual_tours: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default="[]"
    )

    agent_id: Mapped[str] = mapped_column(String(64), nullable=False)
    agency_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
