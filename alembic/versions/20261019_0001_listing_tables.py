"""Listings and their favorites, inquiries, reviews, appointments, price history.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _listing_fk() -> sa.Column:
    return sa.Column(
        "listing_id",
        sa.Integer(),
        sa.ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("property_type", sa.String(length=20), nullable=False),
        sa.Column("listing_type", sa.String(length=10), nullable=False),
        sa.Column(
            "status", sa.String(length=10), server_default="PENDING", nullable=False
        ),
        sa.Column("price", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("bedrooms", sa.Integer(), server_default="0", nullable=False),
        sa.Column("bathrooms", sa.Integer(), server_default="0", nullable=False),
        sa.Column("floor_area", sa.Integer(), nullable=True),
        sa.Column("lot_size", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("parking_spaces", sa.Integer(), nullable=True),
        sa.Column("hoa_fee", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("tax_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=False),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("neighborhood", sa.String(length=100), nullable=True),
        sa.Column("latitude", sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column("longitude", sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column(
            "features",
            postgresql.ARRAY(sa.Text()),
            server_default="{}",
            nullable=False,
        ),
        sa.Column(
            "amenities",
            postgresql.ARRAY(sa.Text()),
            server_default="{}",
            nullable=False,
        ),
        sa.Column(
            "images", postgresql.JSONB(), server_default="[]", nullable=False
        ),
        sa.Column(
            "videos", postgresql.JSONB(), server_default="[]", nullable=False
        ),
        sa.Column(
            "documents", postgresql.JSONB(), server_default="[]", nullable=False
        ),
        sa.Column(
            "virtual_tours", postgresql.JSONB(), server_default="[]", nullable=False
        ),
        sa.Column("agent_id", sa.String(length=64), nullable=False),
        sa.Column("agency_id", sa.String(length=64), nullable=True),
        sa.Column("view_count", sa.Integer(), server_default="0", nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        sa.CheckConstraint("bedrooms >= 0", name="ck_listings_bedrooms_non_negative"),
        sa.CheckConstraint(
            "bathrooms >= 0", name="ck_listings_bathrooms_non_negative"
        ),
        sa.CheckConstraint(
            "floor_area IS NULL OR floor_area >= 0",
            name="ck_listings_floor_area_non_negative",
        ),
        sa.CheckConstraint(
            "latitude IS NULL OR (latitude >= -90 AND latitude <= 90)",
            name="ck_listings_latitude_range",
        ),
        sa.CheckConstraint(
            "longitude IS NULL OR (longitude >= -180 AND longitude <= 180)",
            name="ck_listings_longitude_range",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_listings_slug", "listings", ["slug"], unique=True)
    op.create_index(
        "idx_listings_type_status",
        "listings",
        ["property_type", "listing_type", "status"],
    )
    op.create_index("idx_listings_price", "listings", ["price"])
    op.create_index("idx_listings_city", "listings", ["city"])
    op.create_index("idx_listings_geo", "listings", ["latitude", "longitude"])
    op.create_index("idx_listings_agent", "listings", ["agent_id"])
    op.create_index("idx_listings_created", "listings", ["created_at"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        _listing_fk(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "listing_id", name="uq_favorites_user_listing"
        ),
    )
    op.create_index("idx_favorites_listing", "favorites", ["listing_id"])

    op.create_table(
        "inquiries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _listing_fk(),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column(
            "inquiry_type",
            sa.String(length=20),
            server_default="GENERAL",
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_inquiries_listing", "inquiries", ["listing_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _listing_fk(),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_reviews_listing_created", "reviews", ["listing_id", "created_at"]
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _listing_fk(),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "appointment_type",
            sa.String(length=20),
            server_default="VIEWING",
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default="SCHEDULED",
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_appointments_listing", "appointments", ["listing_id"])

    op.create_table(
        "price_changes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _listing_fk(),
        sa.Column("old_price", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("new_price", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_price_changes_listing", "price_changes", ["listing_id"])
    op.create_index("idx_price_changes_date", "price_changes", ["changed_at"])


def downgrade() -> None:
    """Downgrade schema."""

    for table in (
        "price_changes",
        "appointments",
        "reviews",
        "inquiries",
        "favorites",
        "listings",
    ):
        op.drop_table(table)
