# mypy: ignore-errors
"""Tests for the entity store seam and read retries."""

import pytest
from sqlalchemy.exc import OperationalError

from townsquare.core.errors import NotFound, TransientStoreFailure, ValidationFailure
from townsquare.models import Channel
from townsquare.services import store as store_module
from townsquare.services.store import retry_read


def test_retry_read_recovers(mocker) -> None:
    mocker.patch.object(store_module, "_sleep_backoff")
    fn = mocker.Mock(side_effect=[TransientStoreFailure(), TransientStoreFailure(), "ok"])
    assert retry_read(fn, retries=2) == "ok"
    assert fn.call_count == 3


def test_retry_read_gives_up(mocker) -> None:
    sleep = mocker.patch.object(store_module, "_sleep_backoff")
    fn = mocker.Mock(side_effect=TransientStoreFailure())
    with pytest.raises(TransientStoreFailure):
        retry_read(fn, retries=1)
    assert fn.call_count == 2
    sleep.assert_called_once_with(0)


def test_operational_error_becomes_transient(store, mocker) -> None:
    mocker.patch.object(
        store.session, "get", side_effect=OperationalError("SELECT 1", {}, Exception("timeout"))
    )
    with pytest.raises(TransientStoreFailure):
        store.get(Channel, 1)


def test_increment_is_atomic_update(store, channel, db_session) -> None:
    assert store.increment(Channel, channel.id, member_count=2, post_count=1) == 1
    store.commit()
    db_session.refresh(channel)
    assert (channel.member_count, channel.post_count) == (3, 1)


def test_increment_missing_row(store) -> None:
    assert store.increment(Channel, 777, member_count=1) == 0


def test_get_active_hides_inactive(store, channel, db_session) -> None:
    channel.is_active = False
    db_session.commit()
    with pytest.raises(NotFound) as exc_info:
        store.get_active(Channel, channel.id, "Channel")
    assert exc_info.value.message == "Channel not found"


def test_increment_below_check_constraint_is_typed(store, channel, db_session) -> None:
    with pytest.raises(ValidationFailure) as exc_info:
        store.increment(Channel, channel.id, post_count=-1)
    assert exc_info.value.message == "Counter out of range"
    db_session.refresh(channel)
    assert channel.post_count == 0


def test_update_if_skips_changed_row(store, channel, db_session) -> None:
    assert store.update_if(channel, {"name": "Politics"}, {"description": "Local"}) is True
    assert store.update_if(channel, {"name": "Sports"}, {"description": "Other"}) is False
    store.commit()
    db_session.refresh(channel)
    assert channel.description == "Local"
