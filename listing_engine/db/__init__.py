"""Database session and repository utilities."""

from listing_engine.db.repositories import (
    ListingCounts,
    ListingInsert,
    ListingRecord,
    ListingRepository,
    PriceChangeRecord,
    ReviewRecord,
    SimilarityQuery,
    SqlListingRepository,
)
from listing_engine.db.session import (
    dispose_engine,
    get_engine,
    get_sessionmaker,
    session_context,
)

__all__ = [
    "dispose_engine",
    "get_engine",
    "get_sessionmaker",
    "session_context",
    "ListingCounts",
    "ListingInsert",
    "ListingRecord",
    "ListingRepository",
    "PriceChangeRecord",
    "ReviewRecord",
    "SimilarityQuery",
    "SqlListingRepository",
]
