"""Listing inquiry table model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from listing_engine.models.base import Base


class Inquiry(Base):
    """Contact request sent to the listing agent."""

    __tablename__ = "inquiries"
    __table_args__ = (Index("idx_inquiries_listing", "listing_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(nullable=True)
    inquiry_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="GENERAL", server_default="GENERAL"
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
