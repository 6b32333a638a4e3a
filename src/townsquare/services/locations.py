"""Location lifecycle and location membership."""
from __future__ import annotations

import logging

from sqlalchemy import update

from townsquare.core.errors import DuplicateSlug, NotFound, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Location, UserLocation
from townsquare.schemas.location import LocationCreate, LocationUpdate
from townsquare.services.policy import Resource, authorize, resource_for
from townsquare.services.slugs import SlugResolver
from townsquare.services.store import EntityStore, retry_read
from townsquare.services.users import require_profile

logger = logging.getLogger(__name__)


def list_locations(store: EntityStore, *, limit: int = 100) -> list[Location]:
    return retry_read(
        lambda: store.list(Location, {"is_active": True}, order_by=(Location.name,), limit=limit)
    )


def get_location_by_slug(store: EntityStore, slug: str) -> Location:
    location = retry_read(lambda: store.find_one(Location, slug=slug, is_active=True))
    if location is None:
        raise NotFound("Location not found")
    return location


def create_location(store: EntityStore, actor: Actor, data: LocationCreate) -> Location:
    """Create a location with a globally unique slug derived from its name.

    Raises:
        Forbidden: If a non-admin sets latitude, longitude or timezone.
        InvalidName: If the name has no slug-able characters.
        DuplicateSlug: If the slug exists, including a lost insert race.
    """
    fields = frozenset(name for name, value in data.model_dump().items() if value is not None)
    authorize(actor, "create", Resource("location", owner_id=actor.user_id, fields=fields))
    require_profile(store, actor)
    slug = SlugResolver(store).resolve(data.name)
    location = store.create(
        Location,
        {**data.model_dump(), "slug": slug, "created_by": actor.user_id},
        conflict=DuplicateSlug(),
    )
    store.commit(conflict=DuplicateSlug())
    logger.info("Location %s (%s) created by %s", location.id, slug, actor.user_id)
    return location


def update_location(
    store: EntityStore,
    actor: Actor,
    location_id: int,
    data: LocationUpdate,
) -> Location:
    """Apply a partial update; the slug only changes when ``regenerate_slug`` is set."""
    location = store.get_active(Location, location_id, "Location")
    changes = data.model_dump(exclude_unset=True, exclude={"regenerate_slug"})
    authorize(actor, "update", resource_for(location, set(changes)))
    if data.regenerate_slug:
        changes["slug"] = SlugResolver(store).resolve(
            changes.get("name", location.name), exclude_id=location.id
        )
    store.update(location, changes, conflict=DuplicateSlug())
    store.commit(conflict=DuplicateSlug())
    if data.regenerate_slug:
        logger.info("Location %s renamed to slug %s", location.id, location.slug)
    return location


def deactivate_location(store: EntityStore, actor: Actor, location_id: int) -> None:
    location = store.get_active(Location, location_id, "Location")
    authorize(actor, "delete", location)
    store.update(location, {"is_active": False})
    store.commit()
    logger.info("Location %s deactivated by %s", location_id, actor.user_id)


def join_location(
    store: EntityStore,
    actor: Actor,
    location_id: int,
    *,
    is_primary: bool = False,
) -> UserLocation:
    """Join a location, optionally making it the actor's primary one.

    Marking a location primary clears the flag on every other location of
    the actor. Joining again only updates the primary flag.
    """
    authorize(actor, "create", Resource("user_location", owner_id=actor.user_id))
    require_profile(store, actor)
    store.get_active(Location, location_id, "Location")

    if is_primary:
        _clear_primary(store, actor.user_id)
    membership = store.find_one(UserLocation, user_id=actor.user_id, location_id=location_id)
    if membership is None:
        membership = store.create(
            UserLocation,
            {"user_id": actor.user_id, "location_id": location_id, "is_primary": is_primary},
            conflict=ValidationFailure("Already joined this location"),
        )
    elif is_primary:
        store.update(membership, {"is_primary": True})
    store.commit(conflict=ValidationFailure("Already joined this location"))
    return membership


def _clear_primary(store: EntityStore, user_id: str) -> None:
    stmt = (
        update(UserLocation)
        .where(UserLocation.user_id == user_id, UserLocation.is_primary.is_(True))
        .values(is_primary=False)
        .execution_options(synchronize_session="fetch")
    )
    with store.guard():
        store.session.execute(stmt)


def leave_location(store: EntityStore, actor: Actor, location_id: int) -> None:
    authorize(actor, "delete", Resource("user_location", owner_id=actor.user_id))
    membership = store.find_one(UserLocation, user_id=actor.user_id, location_id=location_id)
    if membership is None:
        raise NotFound("Not a member of this location")
    authorize(actor, "delete", membership)
    store.delete(membership)
    store.commit()


def location_member_ids(store: EntityStore, location_id: int) -> list[str]:
    return [row.user_id for row in store.list(UserLocation, {"location_id": location_id})]
