import pytest

from listing_engine.errors import Forbidden
from listing_engine.models.enums import ActorRole
from listing_engine.services.permissions import Actor, can_mutate, ensure_can_mutate
from tests.fakes import make_record


@pytest.mark.parametrize(
    ("actor", "allowed"),
    [
        (Actor("agent-1"), True),
        (Actor("agent-2", ActorRole.AGENT, "agency-1"), False),
        (Actor("admin-1", ActorRole.ADMIN, "agency-1"), True),
        (Actor("admin-2", ActorRole.ADMIN, "agency-9"), False),
        (Actor("admin-3", ActorRole.ADMIN), False),
        (Actor("root", ActorRole.SUPER_ADMIN), True),
        (Actor("user-1"), False),
    ],
)
def test_can_mutate(actor: Actor, allowed: bool) -> None:
    assert can_mutate(actor, make_record(1)) is allowed


def test_admin_without_agency_cannot_mutate_agencyless_listing() -> None:
    listing = make_record(1, agency_id=None)

    assert can_mutate(Actor("admin-1", ActorRole.ADMIN), listing) is False


def test_ensure_can_mutate_raises_forbidden() -> None:
    with pytest.raises(Forbidden):
        ensure_can_mutate(Actor("user-1"), make_record(1))
