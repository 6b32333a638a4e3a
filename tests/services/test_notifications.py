# mypy: ignore-errors
"""Tests for notification fan-out and read state."""

import pytest

from townsquare.core.errors import Forbidden, NotFound
from townsquare.core.security import Actor
from townsquare.services.notifications import (
    list_notifications,
    mark_all_read,
    mark_read,
    notify,
    notify_many,
)


def test_self_notification_is_skipped(store, test_user) -> None:
    result = notify(
        store, test_user.id, "post_vote", title="t", message="m", actor_id=test_user.id
    )
    assert result is None


def test_unknown_type_is_rejected(store, test_user) -> None:
    with pytest.raises(ValueError):
        notify(store, test_user.id, "birthday", title="t", message="m")


def test_notify_many_deduplicates(store, test_user, other_user, db_session) -> None:
    created = notify_many(
        store,
        [test_user.id, other_user.id, test_user.id],
        "channel_new_post",
        title="New post",
        message="hello",
        actor_id=other_user.id,
    )
    db_session.commit()
    assert created == 1


def test_list_and_mark_read(store, actor, other_actor, test_user) -> None:
    for title in ("one", "two"):
        notify(store, test_user.id, "post_comment", title=title, message="m")
    store.commit()

    listed = list_notifications(store, actor)
    assert [n.title for n in listed] == ["two", "one"]

    with pytest.raises(Forbidden):
        mark_read(store, other_actor, listed[0].id)

    mark_read(store, actor, listed[0].id)
    assert [n.title for n in list_notifications(store, actor, unread_only=True)] == ["one"]
    assert mark_all_read(store, actor) == 1
    assert list_notifications(store, actor, unread_only=True) == []


def test_mark_missing_notification(store, actor) -> None:
    with pytest.raises(NotFound):
        mark_read(store, actor, 1234)


def test_guest_cannot_list(store) -> None:
    with pytest.raises(Forbidden):
        list_notifications(store, Actor.guest())
