"""Channel lifecycle and channel membership."""
from __future__ import annotations

import logging

from townsquare.core.errors import DuplicateSlug, Forbidden, NotFound, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Channel, ChannelMembership, Location
from townsquare.models.channel import MODERATING_ROLES, ROLE_ADMIN, ROLE_MEMBER
from townsquare.models.notification import NOTIFY_LOCATION_NEW_CHANNEL
from townsquare.schemas.channel import ChannelCreate, ChannelUpdate
from townsquare.services.locations import location_member_ids
from townsquare.services.notifications import notify_many
from townsquare.services.policy import Resource, authorize, resource_for
from townsquare.services.slugs import SlugResolver
from townsquare.services.store import EntityStore, retry_read
from townsquare.services.users import require_profile

logger = logging.getLogger(__name__)


def list_channels(store: EntityStore, location_id: int) -> list[Channel]:
    store.get_active(Location, location_id, "Location")
    return retry_read(
        lambda: store.list(
            Channel,
            {"location_id": location_id, "is_active": True},
            order_by=(Channel.member_count.desc(), Channel.name),
        )
    )


def get_channel_by_slug(store: EntityStore, location_id: int, slug: str) -> Channel:
    channel = retry_read(
        lambda: store.find_one(Channel, location_id=location_id, slug=slug, is_active=True)
    )
    if channel is None:
        raise NotFound("Channel not found")
    return channel


def create_channel(
    store: EntityStore,
    actor: Actor,
    location_id: int,
    data: ChannelCreate,
) -> Channel:
    """Create a channel in an active location and make the creator its admin.

    Users who joined the location are notified of the new channel.

    Raises:
        NotFound: If the location is missing or inactive.
        InvalidName: If the name has no slug-able characters.
        DuplicateSlug: If the slug exists in this location.
    """
    authorize(actor, "create", Resource("channel", owner_id=actor.user_id))
    require_profile(store, actor)
    location = store.get_active(Location, location_id, "Location")
    slug = SlugResolver(store).resolve(data.name, location.id)

    channel = store.create(
        Channel,
        {
            **data.model_dump(),
            "location_id": location.id,
            "slug": slug,
            "created_by": actor.user_id,
            "member_count": 1,
        },
        conflict=DuplicateSlug(),
    )
    store.create(
        ChannelMembership,
        {"user_id": actor.user_id, "channel_id": channel.id, "role": ROLE_ADMIN},
    )
    notify_many(
        store,
        location_member_ids(store, location.id),
        NOTIFY_LOCATION_NEW_CHANNEL,
        title=f"New channel in {location.name}",
        message=f"#{channel.name} was just created",
        actor_id=actor.user_id,
        channel_id=channel.id,
        location_id=location.id,
    )
    store.commit(conflict=DuplicateSlug())
    logger.info("Channel %s (%s/%s) created by %s", channel.id, location.slug, slug, actor.user_id)
    return channel


def update_channel(
    store: EntityStore,
    actor: Actor,
    channel_id: int,
    data: ChannelUpdate,
) -> Channel:
    channel = store.get_active(Channel, channel_id, "Channel")
    changes = data.model_dump(exclude_unset=True, exclude={"regenerate_slug"})
    authorize(actor, "update", resource_for(channel, set(changes)))
    if data.regenerate_slug:
        changes["slug"] = SlugResolver(store).resolve(
            changes.get("name", channel.name), channel.location_id, exclude_id=channel.id
        )
    store.update(channel, changes, conflict=DuplicateSlug())
    store.commit(conflict=DuplicateSlug())
    return channel


def deactivate_channel(store: EntityStore, actor: Actor, channel_id: int) -> None:
    channel = store.get_active(Channel, channel_id, "Channel")
    authorize(actor, "delete", channel)
    store.update(channel, {"is_active": False})
    store.commit()
    logger.info("Channel %s deactivated by %s", channel_id, actor.user_id)


def join_channel(store: EntityStore, actor: Actor, channel_id: int) -> ChannelMembership:
    """Subscribe the actor; membership row and ``member_count`` change commit together.

    Raises:
        ValidationFailure: If the actor is already a member.
    """
    authorize(actor, "create", Resource("channel_membership", owner_id=actor.user_id))
    require_profile(store, actor)
    channel = store.get_active(Channel, channel_id, "Channel")
    already = ValidationFailure("Already a member")
    if store.find_one(ChannelMembership, user_id=actor.user_id, channel_id=channel.id):
        raise already
    membership = store.create(
        ChannelMembership,
        {"user_id": actor.user_id, "channel_id": channel.id, "role": ROLE_MEMBER},
        conflict=already,
    )
    store.increment(Channel, channel.id, member_count=1)
    store.commit(conflict=already)
    return membership


def leave_channel(store: EntityStore, actor: Actor, channel_id: int) -> None:
    """Unsubscribe the actor.

    Raises:
        NotFound: If the actor is not a member.
    """
    authorize(actor, "delete", Resource("channel_membership", owner_id=actor.user_id))
    membership = store.find_one(ChannelMembership, user_id=actor.user_id, channel_id=channel_id)
    if membership is None:
        raise NotFound("Not a member of this channel")
    authorize(actor, "delete", membership)
    store.delete(membership)
    store.increment(Channel, channel_id, member_count=-1)
    store.commit()


def require_channel_moderator(store: EntityStore, actor: Actor, channel_id: int) -> ChannelMembership:
    """Return the actor's membership if it carries a moderating role.

    Raises:
        Forbidden: Otherwise.
    """
    membership = None
    if actor.is_authenticated:
        membership = store.find_one(ChannelMembership, user_id=actor.user_id, channel_id=channel_id)
    if membership is None or membership.role not in MODERATING_ROLES:
        logger.debug("Denied moderation of channel %s for %s", channel_id, actor.user_id or "guest")
        raise Forbidden()
    return membership


def notification_recipients(store: EntityStore, channel_id: int) -> list[str]:
    """Members of a channel who keep notifications enabled."""
    return [
        row.user_id
        for row in store.list(
            ChannelMembership, {"channel_id": channel_id, "notifications_enabled": True}
        )
    ]
