# mypy: ignore-errors
"""Tests for channel lifecycle and membership counters."""

import pytest
from sqlalchemy import select

from townsquare.core.errors import DuplicateSlug, Forbidden, InvalidName, NotFound, ValidationFailure
from townsquare.models import ChannelMembership, Notification
from townsquare.schemas.channel import ChannelCreate, ChannelUpdate
from townsquare.services.channels import (
    create_channel,
    get_channel_by_slug,
    join_channel,
    leave_channel,
    list_channels,
    require_channel_moderator,
    update_channel,
)
from townsquare.services.locations import join_location


def test_creator_becomes_admin(store, actor, location, db_session) -> None:
    channel = create_channel(store, actor, location.id, ChannelCreate(name="Local Politics"))
    assert channel.slug == "local-politics"
    assert channel.member_count == 1
    membership = db_session.execute(select(ChannelMembership)).scalar_one()
    assert membership.role == "admin"
    assert require_channel_moderator(store, actor, channel.id) is not None


def test_duplicate_channel_in_same_location(store, actor, channel, location) -> None:
    with pytest.raises(DuplicateSlug):
        create_channel(store, actor, location.id, ChannelCreate(name="politics"))


def test_unsluggable_channel_name(store, actor, location) -> None:
    with pytest.raises(InvalidName):
        create_channel(store, actor, location.id, ChannelCreate(name="???"))


def test_channel_in_missing_location(store, actor) -> None:
    with pytest.raises(NotFound):
        create_channel(store, actor, 404, ChannelCreate(name="Anything"))


def test_location_members_hear_about_new_channels(
    store, actor, other_actor, other_user, location, db_session
) -> None:
    join_location(store, other_actor, location.id)
    join_location(store, actor, location.id)
    create_channel(store, actor, location.id, ChannelCreate(name="Events"))

    notifications = db_session.execute(select(Notification)).scalars().all()
    assert [(n.user_id, n.type) for n in notifications] == [(other_user.id, "location_new_channel")]


def test_join_and_leave_adjust_member_count(store, other_actor, channel, db_session) -> None:
    join_channel(store, other_actor, channel.id)
    db_session.refresh(channel)
    assert channel.member_count == 2

    with pytest.raises(ValidationFailure) as exc_info:
        join_channel(store, other_actor, channel.id)
    assert exc_info.value.message == "Already a member"

    leave_channel(store, other_actor, channel.id)
    db_session.refresh(channel)
    assert channel.member_count == 1

    with pytest.raises(NotFound):
        leave_channel(store, other_actor, channel.id)


def test_plain_member_is_not_moderator(store, other_actor, channel) -> None:
    join_channel(store, other_actor, channel.id)
    with pytest.raises(Forbidden):
        require_channel_moderator(store, other_actor, channel.id)


def test_only_creator_updates_channel(store, actor, other_actor, channel, location) -> None:
    with pytest.raises(Forbidden):
        update_channel(store, other_actor, channel.id, ChannelUpdate(description="x"))
    updated = update_channel(
        store, actor, channel.id, ChannelUpdate(name="City Politics", regenerate_slug=True)
    )
    assert updated.slug == "city-politics"
    assert get_channel_by_slug(store, location.id, "city-politics").id == channel.id
    assert [c.id for c in list_channels(store, location.id)] == [channel.id]
