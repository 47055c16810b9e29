"""Authorization of listing mutations."""

from dataclasses import dataclass

from listing_engine.db.repositories import ListingRecord
from listing_engine.errors import Forbidden
from listing_engine.models.enums import ActorRole


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated caller, resolved upstream by the auth layer."""

    id: str
    role: ActorRole = ActorRole.USER
    agency_id: str | None = None


def can_mutate(actor: Actor, listing: ListingRecord) -> bool:
    if actor.id == listing.agent_id:
        return True
    if actor.role == ActorRole.SUPER_ADMIN:
        return True
    return (
        actor.role == ActorRole.ADMIN
        and actor.agency_id is not None
        and actor.agency_id == listing.agency_id
    )


def ensure_can_mutate(actor: Actor, listing: ListingRecord) -> None:
    if not can_mutate(actor, listing):
        raise Forbidden(f"Actor {actor.id} may not modify listing {listing.id}")
