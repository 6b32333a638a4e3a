# mypy: ignore-errors
"""Tests for location lifecycle and membership."""

import pytest
from sqlalchemy import select

from townsquare.core.errors import DuplicateSlug, Forbidden, NotFound
from townsquare.models import UserLocation
from townsquare.schemas.location import LocationCreate, LocationUpdate
from townsquare.services.locations import (
    create_location,
    deactivate_location,
    get_location_by_slug,
    join_location,
    leave_location,
    list_locations,
    update_location,
)


def test_create_location_derives_slug(store, actor) -> None:
    location = create_location(store, actor, LocationCreate(name="Ann Arbor", state="MI"))
    assert location.slug == "ann-arbor"
    assert location.country == "United States"
    assert location.created_by == actor.user_id


def test_duplicate_location_name(store, actor, location) -> None:
    with pytest.raises(DuplicateSlug):
        create_location(store, actor, LocationCreate(name="Ann  Arbor!"))


def test_coordinates_need_admin(store, actor, admin_actor) -> None:
    data = LocationCreate(name="Ypsilanti", latitude=42.24, longitude=-83.61)
    with pytest.raises(Forbidden):
        create_location(store, actor, data)
    assert create_location(store, admin_actor, data).latitude == pytest.approx(42.24)


def test_rename_regenerates_slug_only_on_request(store, actor, location) -> None:
    renamed = update_location(store, actor, location.id, LocationUpdate(name="Tree Town"))
    assert renamed.slug == "ann-arbor"

    renamed = update_location(
        store, actor, location.id, LocationUpdate(name="Tree Town", regenerate_slug=True)
    )
    assert renamed.slug == "tree-town"
    assert get_location_by_slug(store, "tree-town").id == location.id


def test_non_owner_cannot_update(store, other_actor, admin_actor, location) -> None:
    with pytest.raises(Forbidden):
        update_location(store, other_actor, location.id, LocationUpdate(description="mine now"))
    updated = update_location(store, admin_actor, location.id, LocationUpdate(timezone="America/Detroit"))
    assert updated.timezone == "America/Detroit"


def test_deactivated_location_is_hidden(store, actor, location) -> None:
    deactivate_location(store, actor, location.id)
    assert list_locations(store) == []
    with pytest.raises(NotFound):
        get_location_by_slug(store, "ann-arbor")


def test_primary_location_is_exclusive(store, actor, location, db_session) -> None:
    other = create_location(store, actor, LocationCreate(name="Detroit"))
    join_location(store, actor, location.id, is_primary=True)
    join_location(store, actor, other.id, is_primary=True)

    rows = db_session.execute(
        select(UserLocation).where(UserLocation.user_id == actor.user_id).order_by(UserLocation.location_id)
    ).scalars().all()
    assert [(row.location_id, row.is_primary) for row in rows] == [
        (location.id, False),
        (other.id, True),
    ]


def test_leave_location(store, actor, location) -> None:
    join_location(store, actor, location.id)
    leave_location(store, actor, location.id)
    with pytest.raises(NotFound):
        leave_location(store, actor, location.id)
