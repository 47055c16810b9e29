"""Repository helpers for listing queries and persistence."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy import (
    ColumnElement,
    and_,
    case,
    delete,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_engine.criteria import Criteria, NumericRange, SearchOptions
from listing_engine.errors import RepositoryError
from listing_engine.geo import BoundingBox
from listing_engine.models.appointment import Appointment
from listing_engine.models.enums import ListingStatus
from listing_engine.models.favorite import Favorite
from listing_engine.models.inquiry import Inquiry
from listing_engine.models.listing import Listing
from listing_engine.models.price_change import PriceChange
from listing_engine.models.review import Review

RECENT_REVIEWS_LIMIT = 10
PRICE_HISTORY_LIMIT = 20


@dataclass(slots=True)
class ListingCounts:
    favorites: int = 0
    inquiries: int = 0
    reviews: int = 0
    appointments: int = 0


@dataclass(slots=True)
class ReviewRecord:
    id: int
    user_id: str
    rating: int
    comment: str | None
    created_at: datetime


@dataclass(slots=True)
class PriceChangeRecord:
    old_price: Decimal
    new_price: Decimal
    changed_at: datetime


@dataclass(slots=True)
class ListingRecord:
    """Detached snapshot of a listing row plus its aggregated relations."""

    id: int
    slug: str
    title: str
    description: str | None
    property_type: str
    listing_type: str
    status: str
    price: Decimal
    bedrooms: int
    bathrooms: int
    floor_area: int | None
    lot_size: int | None
    year_built: int | None
    parking_spaces: int | None
    hoa_fee: Decimal | None
    tax_amount: Decimal | None
    address: str
    city: str
    state: str
    postal_code: str | None
    neighborhood: str | None
    latitude: Decimal | None
    longitude: Decimal | None
    features: list[str]
    amenities: list[str]
    images: list[dict[str, Any]]
    videos: list[dict[str, Any]]
    documents: list[dict[str, Any]]
    virtual_tours: list[dict[str, Any]]
    agent_id: str
    agency_id: str | None
    view_count: int
    created_at: datetime
    updated_at: datetime
    counts: ListingCounts = field(default_factory=ListingCounts)
    reviews: list[ReviewRecord] = field(default_factory=list)
    price_history: list[PriceChangeRecord] = field(default_factory=list)


@dataclass(slots=True)
class ListingInsert:
    """Payload used to insert a new listing row."""

    slug: str
    title: str
    description: str | None
    property_type: str
    listing_type: str
    status: str
    price: Decimal
    bedrooms: int
    bathrooms: int
    floor_area: int | None
    lot_size: int | None
    year_built: int | None
    parking_spaces: int | None
    hoa_fee: Decimal | None
    tax_amount: Decimal | None
    address: str
    city: str
    state: str
    postal_code: str | None
    neighborhood: str | None
    latitude: Decimal | None
    longitude: Decimal | None
    features: list[str]
    amenities: list[str]
    images: list[dict[str, Any]]
    videos: list[dict[str, Any]]
    documents: list[dict[str, Any]]
    virtual_tours: list[dict[str, Any]]
    agent_id: str
    agency_id: str | None


@dataclass(slots=True)
class SimilarityQuery:
    """Filter for comparable active listings around a reference listing."""

    listing_id: int
    property_type: str
    min_price: Decimal
    max_price: Decimal
    city: str | None
    postal_code: str | None
    bedrooms: int
    bathrooms: int
    limit: int


class ListingRepository(Protocol):
    """Persistence collaborator consumed by the listing engine."""

    async def count(
        self, criteria: Criteria, bbox: BoundingBox | None, *, exclude_inactive: bool
    ) -> int: ...

    async def find(
        self,
        criteria: Criteria,
        bbox: BoundingBox | None,
        options: SearchOptions,
        *,
        exclude_inactive: bool,
    ) -> list[ListingRecord]: ...

    async def find_by_id(self, listing_id: int) -> ListingRecord | None: ...

    async def find_id_by_slug(self, slug: str) -> int | None: ...

    async def find_similar(self, query: SimilarityQuery) -> list[ListingRecord]: ...

    async def is_favorited(self, listing_id: int, user_id: str) -> bool: ...

    async def toggle_favorite(self, listing_id: int, user_id: str) -> bool: ...

    async def create(self, row: ListingInsert) -> ListingRecord: ...

    async def update(
        self, listing_id: int, changes: Mapping[str, object]
    ) -> ListingRecord | None: ...

    async def delete(self, listing_id: int) -> bool: ...

    async def increment_views(self, listing_id: int) -> None: ...


def _range_conditions(
    column: Any, value_range: NumericRange
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if value_range.minimum is not None:
        conditions.append(column >= value_range.minimum)
    if value_range.maximum is not None:
        conditions.append(column <= value_range.maximum)
    return conditions


def build_listing_conditions(
    criteria: Criteria,
    bbox: BoundingBox | None = None,
    *,
    exclude_inactive: bool = True,
) -> list[ColumnElement[bool]]:
    """Translate criteria into WHERE clauses over the listings table."""

    conditions: list[ColumnElement[bool]] = []

    if criteria.property_type is not None:
        conditions.append(Listing.property_type == criteria.property_type)
    if criteria.listing_type is not None:
        conditions.append(Listing.listing_type == criteria.listing_type)
    if criteria.status is not None:
        conditions.append(Listing.status == criteria.status)
    elif exclude_inactive:
        conditions.append(Listing.status != ListingStatus.INACTIVE)

    conditions.extend(_range_conditions(Listing.price, criteria.price))
    conditions.extend(_range_conditions(Listing.bedrooms, criteria.bedrooms))
    conditions.extend(_range_conditions(Listing.bathrooms, criteria.bathrooms))
    conditions.extend(_range_conditions(Listing.floor_area, criteria.floor_area))
    conditions.extend(_range_conditions(Listing.year_built, criteria.year_built))

    if criteria.city:
        conditions.append(Listing.city.icontains(criteria.city, autoescape=True))
    if criteria.state:
        conditions.append(Listing.state.icontains(criteria.state, autoescape=True))
    if criteria.neighborhood:
        conditions.append(
            Listing.neighborhood.icontains(criteria.neighborhood, autoescape=True)
        )
    if criteria.query:
        conditions.append(
            or_(
                Listing.title.icontains(criteria.query, autoescape=True),
                Listing.description.icontains(criteria.query, autoescape=True),
                Listing.address.icontains(criteria.query, autoescape=True),
                Listing.city.icontains(criteria.query, autoescape=True),
                Listing.neighborhood.icontains(criteria.query, autoescape=True),
            )
        )

    if criteria.features:
        conditions.append(Listing.features.overlap(sorted(criteria.features)))
    if criteria.amenities:
        conditions.append(Listing.amenities.overlap(sorted(criteria.amenities)))

    if criteria.agent_id:
        conditions.append(Listing.agent_id == criteria.agent_id)
    if criteria.agency_id:
        conditions.append(Listing.agency_id == criteria.agency_id)

    if bbox is not None:
        conditions.append(Listing.latitude.between(bbox.lat_min, bbox.lat_max))
        conditions.append(Listing.longitude.between(bbox.lon_min, bbox.lon_max))

    return conditions


async def count_listings(
    session: AsyncSession,
    criteria: Criteria,
    bbox: BoundingBox | None = None,
    *,
    exclude_inactive: bool = True,
) -> int:
    stmt = select(func.count(Listing.id)).where(
        *build_listing_conditions(criteria, bbox, exclude_inactive=exclude_inactive)
    )
    return int((await session.execute(stmt)).scalar_one_or_none() or 0)


async def fetch_listing_page(
    session: AsyncSession,
    criteria: Criteria,
    bbox: BoundingBox | None,
    options: SearchOptions,
    *,
    exclude_inactive: bool = True,
) -> list[Listing]:
    """Fetch one sorted page of listings matching the criteria."""

    sort_column = getattr(Listing, options.sort_by)
    order = sort_column.asc() if options.sort_order == "asc" else sort_column.desc()
    stmt = (
        select(Listing)
        .where(
            *build_listing_conditions(criteria, bbox, exclude_inactive=exclude_inactive)
        )
        .order_by(order, Listing.id.desc())
        .offset(options.offset)
        .limit(options.limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _count_by_listing(
    session: AsyncSession, model: Any, listing_ids: list[int]
) -> dict[int, int]:
    stmt = (
        select(model.listing_id, func.count(model.id))
        .where(model.listing_id.in_(listing_ids))
        .group_by(model.listing_id)
    )
    rows = (await session.execute(stmt)).all()
    return {int(row[0]): int(row[1]) for row in rows}


async def fetch_listing_counts(
    session: AsyncSession, listing_ids: list[int]
) -> dict[int, ListingCounts]:
    """Aggregate favorites, inquiries, reviews and appointments per listing."""

    if not listing_ids:
        return {}

    favorites = await _count_by_listing(session, Favorite, listing_ids)
    inquiries = await _count_by_listing(session, Inquiry, listing_ids)
    reviews = await _count_by_listing(session, Review, listing_ids)
    appointments = await _count_by_listing(session, Appointment, listing_ids)

    return {
        listing_id: ListingCounts(
            favorites=favorites.get(listing_id, 0),
            inquiries=inquiries.get(listing_id, 0),
            reviews=reviews.get(listing_id, 0),
            appointments=appointments.get(listing_id, 0),
        )
        for listing_id in listing_ids
    }


async def fetch_listing(session: AsyncSession, listing_id: int) -> Listing | None:
    stmt = select(Listing).where(Listing.id == listing_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_listing_id_by_slug(session: AsyncSession, slug: str) -> int | None:
    stmt = select(Listing.id).where(Listing.slug == slug)
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_recent_reviews(
    session: AsyncSession, listing_id: int, limit: int = RECENT_REVIEWS_LIMIT
) -> list[ReviewRecord]:
    stmt = (
        select(Review)
        .where(Review.listing_id == listing_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [
        ReviewRecord(
            id=row.id,
            user_id=row.user_id,
            rating=row.rating,
            comment=row.comment,
            created_at=row.created_at,
        )
        for row in rows
    ]


async def fetch_price_history(
    session: AsyncSession, listing_id: int, limit: int = PRICE_HISTORY_LIMIT
) -> list[PriceChangeRecord]:
    stmt = (
        select(PriceChange)
        .where(PriceChange.listing_id == listing_id)
        .order_by(PriceChange.changed_at.desc(), PriceChange.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [
        PriceChangeRecord(
            old_price=row.old_price,
            new_price=row.new_price,
            changed_at=row.changed_at,
        )
        for row in rows
    ]


async def fetch_similar_listings(
    session: AsyncSession, query: SimilarityQuery
) -> list[Listing]:
    """Fetch active comparables: same type, price band, and a location match."""

    location_matches: list[ColumnElement[bool]] = [
        and_(
            Listing.bedrooms == query.bedrooms,
            Listing.bathrooms == query.bathrooms,
        )
    ]
    if query.city is not None:
        location_matches.append(Listing.city == query.city)
    if query.postal_code is not None:
        location_matches.append(Listing.postal_code == query.postal_code)

    same_city_first = (
        case((Listing.city == query.city, 0), else_=1)
        if query.city is not None
        else None
    )
    ordering = [Listing.created_at.desc(), Listing.id.desc()]
    if same_city_first is not None:
        ordering.insert(0, same_city_first)

    stmt = (
        select(Listing)
        .where(Listing.id != query.listing_id)
        .where(Listing.status == ListingStatus.ACTIVE)
        .where(Listing.property_type == query.property_type)
        .where(Listing.price >= query.min_price)
        .where(Listing.price <= query.max_price)
        .where(or_(*location_matches))
        .order_by(*ordering)
        .limit(query.limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def is_listing_favorited(
    session: AsyncSession, listing_id: int, user_id: str
) -> bool:
    stmt = (
        select(Favorite.id)
        .where(Favorite.listing_id == listing_id)
        .where(Favorite.user_id == user_id)
    )
    return (await session.execute(stmt)).scalar_one_or_none() is not None


async def toggle_listing_favorite(
    session: AsyncSession, listing_id: int, user_id: str
) -> bool:
    """Add the favorite if missing, remove it otherwise. Returns the new state."""

    stmt = (
        delete(Favorite)
        .where(Favorite.listing_id == listing_id)
        .where(Favorite.user_id == user_id)
        .returning(Favorite.id)
    )
    removed = (await session.execute(stmt)).scalars().all()
    if not removed:
        session.add(Favorite(user_id=user_id, listing_id=listing_id))
    await session.commit()
    return not removed


async def _available_slug(
    session: AsyncSession, base: str, *, listing_id: int | None = None
) -> str:
    stmt = select(Listing.slug).where(
        or_(Listing.slug == base, Listing.slug.like(f"{base}-%"))
    )
    if listing_id is not None:
        stmt = stmt.where(Listing.id != listing_id)
    taken = set((await session.execute(stmt)).scalars().all())
    if base not in taken:
        return base

    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


async def insert_listing(session: AsyncSession, row: ListingInsert) -> Listing:
    values = asdict(row)
    values["slug"] = await _available_slug(session, row.slug)
    listing = Listing(**values)
    session.add(listing)
    await session.commit()
    await session.refresh(listing)
    return listing


async def update_listing(
    session: AsyncSession, listing_id: int, changes: Mapping[str, object]
) -> Listing | None:
    """Apply field changes, recording a price-history entry on price change."""

    listing = await fetch_listing(session, listing_id)
    if listing is None:
        return None

    values = dict(changes)
    if "slug" in values:
        values["slug"] = await _available_slug(
            session, str(values["slug"]), listing_id=listing_id
        )

    new_price = values.get("price")
    if new_price is not None and Decimal(str(new_price)) != listing.price:
        session.add(
            PriceChange(
                listing_id=listing_id,
                old_price=listing.price,
                new_price=Decimal(str(new_price)),
            )
        )

    for name, value in values.items():
        setattr(listing, name, value)

    await session.commit()
    await session.refresh(listing)
    return listing


async def delete_listing(session: AsyncSession, listing_id: int) -> bool:
    stmt = delete(Listing).where(Listing.id == listing_id).returning(Listing.id)
    deleted = (await session.execute(stmt)).scalars().all()
    await session.commit()
    return bool(deleted)


async def increment_listing_views(session: AsyncSession, listing_id: int) -> None:
    # Keep updated_at untouched; a view is not an edit.
    stmt = (
        update(Listing)
        .where(Listing.id == listing_id)
        .values(view_count=Listing.view_count + 1, updated_at=Listing.updated_at)
    )
    await session.execute(stmt)
    await session.commit()


def to_record(
    listing: Listing,
    counts: ListingCounts | None = None,
    reviews: list[ReviewRecord] | None = None,
    price_history: list[PriceChangeRecord] | None = None,
) -> ListingRecord:
    return ListingRecord(
        id=listing.id,
        slug=listing.slug,
        title=listing.title,
        description=listing.description,
        property_type=listing.property_type,
        listing_type=listing.listing_type,
        status=listing.status,
        price=listing.price,
        bedrooms=listing.bedrooms,
        bathrooms=listing.bathrooms,
        floor_area=listing.floor_area,
        lot_size=listing.lot_size,
        year_built=listing.year_built,
        parking_spaces=listing.parking_spaces,
        hoa_fee=listing.hoa_fee,
        tax_amount=listing.tax_amount,
        address=listing.address,
        city=listing.city,
        state=listing.state,
        postal_code=listing.postal_code,
        neighborhood=listing.neighborhood,
        latitude=listing.latitude,
        longitude=listing.longitude,
        features=list(listing.features or []),
        amenities=list(listing.amenities or []),
        images=list(listing.images or []),
        videos=list(listing.videos or []),
        documents=list(listing.documents or []),
        virtual_tours=list(listing.virtual_tours or []),
        agent_id=listing.agent_id,
        agency_id=listing.agency_id,
        view_count=listing.view_count,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
        counts=counts or ListingCounts(),
        reviews=reviews or [],
        price_history=price_history or [],
    )


async def _load_detail_record(session: AsyncSession, listing: Listing) -> ListingRecord:
    counts = await fetch_listing_counts(session, [listing.id])
    reviews = await fetch_recent_reviews(session, listing.id)
    history = await fetch_price_history(session, listing.id)
    return to_record(listing, counts.get(listing.id), reviews, history)


async def _load_summary_records(
    session: AsyncSession, listings: list[Listing]
) -> list[ListingRecord]:
    counts = await fetch_listing_counts(session, [lst.id for lst in listings])
    return [to_record(lst, counts.get(lst.id)) for lst in listings]


class SqlListingRepository:
    """``ListingRepository`` over PostgreSQL; one session per call."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc

    async def count(
        self, criteria: Criteria, bbox: BoundingBox | None, *, exclude_inactive: bool
    ) -> int:
        async with self._session() as session:
            return await count_listings(
                session, criteria, bbox, exclude_inactive=exclude_inactive
            )

    async def find(
        self,
        criteria: Criteria,
        bbox: BoundingBox | None,
        options: SearchOptions,
        *,
        exclude_inactive: bool,
    ) -> list[ListingRecord]:
        async with self._session() as session:
            listings = await fetch_listing_page(
                session, criteria, bbox, options, exclude_inactive=exclude_inactive
            )
            return await _load_summary_records(session, listings)

    async def find_by_id(self, listing_id: int) -> ListingRecord | None:
        async with self._session() as session:
            listing = await fetch_listing(session, listing_id)
            if listing is None:
                return None
            return await _load_detail_record(session, listing)

    async def find_id_by_slug(self, slug: str) -> int | None:
        async with self._session() as session:
            return await fetch_listing_id_by_slug(session, slug)

    async def find_similar(self, query: SimilarityQuery) -> list[ListingRecord]:
        async with self._session() as session:
            listings = await fetch_similar_listings(session, query)
            return await _load_summary_records(session, listings)

    async def is_favorited(self, listing_id: int, user_id: str) -> bool:
        async with self._session() as session:
            return await is_listing_favorited(session, listing_id, user_id)

    async def toggle_favorite(self, listing_id: int, user_id: str) -> bool:
        async with self._session() as session:
            return await toggle_listing_favorite(session, listing_id, user_id)

    async def create(self, row: ListingInsert) -> ListingRecord:
        async with self._session() as session:
            listing = await insert_listing(session, row)
            return await _load_detail_record(session, listing)

    async def update(
        self, listing_id: int, changes: Mapping[str, object]
    ) -> ListingRecord | None:
        async with self._session() as session:
            listing = await update_listing(session, listing_id, changes)
            if listing is None:
                return None
            return await _load_detail_record(session, listing)

    async def delete(self, listing_id: int) -> bool:
        async with self._session() as session:
            return await delete_listing(session, listing_id)

    async def increment_views(self, listing_id: int) -> None:
        async with self._session() as session:
            await increment_listing_views(session, listing_id)
