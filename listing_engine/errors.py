"""Exception types raised by the listing engine."""

from collections.abc import Iterable


class ListingEngineError(Exception):
    """Base exception for the listing engine."""


class InvalidSearchRequest(ListingEngineError):
    """Search input could not be compiled; ``fields`` names the offenders."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields: tuple[str, ...] = tuple(fields)


class InvalidRange(InvalidSearchRequest):
    """A numeric range has its minimum above its maximum."""


class InvalidGeoFilter(InvalidSearchRequest):
    """Geo filter is incomplete or out of bounds."""


class NotFound(ListingEngineError):
    """Referenced listing does not exist."""

    def __init__(self, listing_ref: int | str) -> None:
        super().__init__(f"Listing not found: {listing_ref}")
        self.listing_ref = listing_ref


class Forbidden(ListingEngineError):
    """Actor may not mutate the listing."""


class RepositoryError(ListingEngineError):
    """Persistence backend failure."""


class CacheError(ListingEngineError):
    """Key-value cache backend failure. Never surfaced to engine callers."""
