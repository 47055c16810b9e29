"""SQLAlchemy ORM models."""

from listing_engine.models.appointment import Appointment
from listing_engine.models.favorite import Favorite
from listing_engine.models.inquiry import Inquiry
from listing_engine.models.listing import Listing
from listing_engine.models.price_change import PriceChange
from listing_engine.models.review import Review

__all__ = ["Appointment", "Favorite", "Inquiry", "Listing", "PriceChange", "Review"]
