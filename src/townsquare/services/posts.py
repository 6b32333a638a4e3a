"""Post write paths and moderation flags."""
from __future__ import annotations

import logging
from typing import Any

from townsquare.core.errors import InvalidPostShape, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Channel, Post
from townsquare.models.notification import NOTIFY_CHANNEL_NEW_POST
from townsquare.schemas.post import (
    ImageContent,
    LinkContent,
    PostContent,
    PostCreate,
    PostFlagsUpdate,
    PostUpdate,
    TextContent,
)
from townsquare.services.channels import notification_recipients, require_channel_moderator
from townsquare.services.notifications import notify_many
from townsquare.services.policy import Resource, authorize
from townsquare.services.store import EntityStore, retry_read
from townsquare.services.users import require_profile

logger = logging.getLogger(__name__)

_LINK_SCHEMES = ("http://", "https://")


def validate_post_shape(content: PostContent) -> dict[str, Any]:
    """Check that ``content`` carries the fields its type requires.

    Returns:
        Column values for the post row, with the other variants' columns cleared.

    Raises:
        InvalidPostShape: On a type/field mismatch.
    """
    columns: dict[str, Any] = {
        "type": content.type,
        "body": None,
        "link_url": None,
        "link_title": None,
        "link_description": None,
        "link_image_url": None,
        "image_urls": None,
        "image_alt_texts": None,
    }
    if isinstance(content, TextContent):
        if not content.body.strip():
            raise InvalidPostShape("Text posts need a body")
        columns["body"] = content.body
    elif isinstance(content, ImageContent):
        if not content.urls:
            raise InvalidPostShape("Image posts need at least one image URL")
        if len(content.alt_texts) > len(content.urls):
            raise InvalidPostShape("More alt texts than images")
        columns["image_urls"] = list(content.urls)
        columns["image_alt_texts"] = list(content.alt_texts)
    elif isinstance(content, LinkContent):
        if not content.url.startswith(_LINK_SCHEMES):
            raise InvalidPostShape("Link posts need an http(s) URL")
        columns.update(
            link_url=content.url,
            link_title=content.title,
            link_description=content.description,
            link_image_url=content.image_url,
        )
    return columns


def get_post(store: EntityStore, post_id: int) -> Post:
    return retry_read(lambda: store.get_active(Post, post_id, "Post"))


def create_post(store: EntityStore, actor: Actor, channel_id: int, data: PostCreate) -> Post:
    """Publish a post in a channel.

    The post's location is the channel's location. Channel members with
    notifications enabled are notified.

    Raises:
        NotFound: If the channel is missing or inactive.
        ValidationFailure: If ``data.location_id`` disagrees with the channel.
        InvalidPostShape: If the content variant is missing required fields.
    """
    authorize(actor, "create", Resource("post", owner_id=actor.user_id))
    require_profile(store, actor)
    channel = store.get_active(Channel, channel_id, "Channel")
    if data.location_id is not None and data.location_id != channel.location_id:
        raise ValidationFailure("Channel does not belong to this location")
    columns = validate_post_shape(data.content)

    post = store.create(
        Post,
        {
            **columns,
            "title": data.title,
            "location_id": channel.location_id,
            "channel_id": channel.id,
            "author_id": actor.user_id,
        },
    )
    store.increment(Channel, channel.id, post_count=1)
    notify_many(
        store,
        notification_recipients(store, channel.id),
        NOTIFY_CHANNEL_NEW_POST,
        title=f"New post in #{channel.name}",
        message=data.title,
        actor_id=actor.user_id,
        post_id=post.id,
        channel_id=channel.id,
        location_id=channel.location_id,
    )
    store.commit()
    logger.info("Post %s created in channel %s by %s", post.id, channel.id, actor.user_id)
    return post


def update_post(store: EntityStore, actor: Actor, post_id: int, data: PostUpdate) -> Post:
    """Edit title or content of the actor's own post; the variant type is fixed."""
    post = store.get_active(Post, post_id, "Post")
    authorize(actor, "update", post)
    changes: dict[str, Any] = {}
    if data.title is not None:
        changes["title"] = data.title
    if data.content is not None:
        if data.content.type != post.type:
            raise InvalidPostShape("Post type cannot change")
        changes.update(validate_post_shape(data.content))
    store.update(post, changes)
    store.commit()
    return post


def deactivate_post(store: EntityStore, actor: Actor, post_id: int) -> None:
    """Soft-delete the actor's post and release its slot in ``post_count``."""
    post = store.get_active(Post, post_id, "Post")
    authorize(actor, "delete", post)
    store.update(post, {"is_active": False})
    store.increment(Channel, post.channel_id, post_count=-1)
    store.commit()
    logger.info("Post %s deactivated by %s", post_id, actor.user_id)


def set_post_flags(
    store: EntityStore,
    actor: Actor,
    post_id: int,
    data: PostFlagsUpdate,
) -> Post:
    """Pin or lock a post; reserved for moderators and admins of its channel."""
    post = store.get_active(Post, post_id, "Post")
    require_channel_moderator(store, actor, post.channel_id)
    store.update(post, data.model_dump(exclude_none=True))
    store.commit()
    logger.info("Post %s flags set to %s by %s", post_id, data.model_dump(exclude_none=True), actor.user_id)
    return post
