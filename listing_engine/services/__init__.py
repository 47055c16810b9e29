"""Service layer for listing search, details, and mutations."""

from listing_engine.services.listing_service import (
    ListingEngine,
    create_listing_engine,
)
from listing_engine.services.permissions import Actor

__all__ = ["Actor", "ListingEngine", "create_listing_engine"]
