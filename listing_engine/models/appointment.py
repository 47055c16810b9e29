"""Listing appointment table model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from listing_engine.models.base import Base


class Appointment(Base):
    """Viewing or consultation booked for a listing."""

    __tablename__ = "appointments"
    __table_args__ = (Index("idx_appointments_listing", "listing_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(nullable=False)
    appointment_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="VIEWING", server_default="VIEWING"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="SCHEDULED", server_default="SCHEDULED"
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
