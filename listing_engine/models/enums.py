"""Enumerations shared by models, records, and views."""

from enum import StrEnum


class PropertyType(StrEnum):
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    VILLA = "VILLA"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"
    MULTI_FAMILY = "MULTI_FAMILY"
    OFFICE = "OFFICE"
    RETAIL = "RETAIL"
    WAREHOUSE = "WAREHOUSE"
    INDUSTRIAL = "INDUSTRIAL"


class ListingType(StrEnum):
    SALE = "SALE"
    RENT = "RENT"
    LEASE = "LEASE"


class ListingStatus(StrEnum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SOLD = "SOLD"
    RENTED = "RENTED"
    INACTIVE = "INACTIVE"


class ActorRole(StrEnum):
    USER = "USER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
