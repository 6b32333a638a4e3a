"""Notifications created as side effects of content events."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import update

from townsquare.core.errors import NotFound
from townsquare.core.security import Actor
from townsquare.models import Notification
from townsquare.models.notification import NOTIFICATION_TYPES
from townsquare.services.policy import Resource, authorize
from townsquare.services.store import EntityStore

logger = logging.getLogger(__name__)


def notify(
    store: EntityStore,
    recipient_id: str,
    kind: str,
    *,
    title: str,
    message: str,
    actor_id: str | None = None,
    post_id: int | None = None,
    comment_id: int | None = None,
    channel_id: int | None = None,
    location_id: int | None = None,
) -> Notification | None:
    """Queue a notification for ``recipient_id`` in the caller's transaction.

    Users are never notified about their own actions; returns None in that case.
    """
    if kind not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {kind}")
    if actor_id is not None and recipient_id == actor_id:
        return None
    return store.create(
        Notification,
        {
            "user_id": recipient_id,
            "type": kind,
            "title": title,
            "message": message,
            "post_id": post_id,
            "comment_id": comment_id,
            "channel_id": channel_id,
            "location_id": location_id,
        },
    )


def notify_many(
    store: EntityStore,
    recipient_ids: Iterable[str],
    kind: str,
    **kwargs: object,
) -> int:
    """Notify every distinct recipient; returns how many notifications were created."""
    created = 0
    for recipient_id in dict.fromkeys(recipient_ids):
        if notify(store, recipient_id, kind, **kwargs) is not None:  # type: ignore[arg-type]
            created += 1
    return created


def list_notifications(
    store: EntityStore,
    actor: Actor,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    """Return the actor's notifications, newest first."""
    filters: dict[str, object] = {"user_id": actor.user_id}
    if unread_only:
        filters["is_read"] = False
    authorize(actor, "read", Resource("notification", owner_id=actor.user_id))
    return store.list(
        Notification,
        filters,
        order_by=(Notification.created_at.desc(), Notification.id.desc()),
        limit=limit,
    )


def mark_read(store: EntityStore, actor: Actor, notification_id: int) -> Notification:
    """Flip ``is_read`` on one of the actor's notifications."""
    notification = store.get(Notification, notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    authorize(actor, "update", notification)
    store.update(notification, {"is_read": True})
    store.commit()
    return notification


def mark_all_read(store: EntityStore, actor: Actor) -> int:
    """Mark every unread notification of the actor as read; returns the count."""
    authorize(actor, "update", Resource("notification", owner_id=actor.user_id))
    stmt = (
        update(Notification)
        .where(Notification.user_id == actor.user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    with store.guard():
        result = store.session.execute(stmt)
    store.commit()
    logger.debug("Marked %d notifications read for %s", result.rowcount, actor.user_id)
    return result.rowcount
