# mypy: ignore-errors
"""Tests for vote casting, flipping, retraction and score maintenance."""

import random

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from townsquare.core.errors import NotFound, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Notification, Vote
from townsquare.services import votes as votes_module
from townsquare.services.store import EntityStore
from townsquare.services.votes import (
    VoteTarget,
    cast_vote,
    counter_deltas,
    get_my_vote,
    retract_vote,
)


def _vote_rows(db_session, target):
    stmt = select(func.count()).select_from(Vote).where(
        Vote.target_type == target.kind, Vote.target_id == target.id
    )
    return db_session.execute(stmt).scalar_one()


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        (None, "upvote", {"upvotes": 1, "score": 1}),
        (None, "downvote", {"downvotes": 1, "score": -1}),
        ("upvote", "downvote", {"upvotes": -1, "downvotes": 1, "score": -2}),
        ("downvote", "upvote", {"upvotes": 1, "downvotes": -1, "score": 2}),
        ("upvote", None, {"upvotes": -1, "score": -1}),
        ("upvote", "upvote", {}),
    ],
)
def test_counter_deltas(old, new, expected) -> None:
    assert counter_deltas(old, new) == expected


def test_first_upvote(store, actor, test_post) -> None:
    tally = cast_vote(store, actor, VoteTarget.post(test_post.id), "upvote")
    assert (tally.upvotes, tally.downvotes, tally.score) == (1, 0, 1)
    assert tally.my_vote == "upvote"


def test_flip_then_repeat(store, actor, test_post, db_session) -> None:
    target = VoteTarget.post(test_post.id)
    cast_vote(store, actor, target, "upvote")
    tally = cast_vote(store, actor, target, "downvote")
    assert (tally.upvotes, tally.downvotes, tally.score) == (0, 1, -1)

    repeated = cast_vote(store, actor, target, "downvote")
    assert (repeated.upvotes, repeated.downvotes, repeated.score) == (0, 1, -1)
    assert _vote_rows(db_session, target) == 1


def test_score_matches_recorded_votes_for_any_sequence(
    store, make_user, test_post, db_session
) -> None:
    target = VoteTarget.post(test_post.id)
    voters = [Actor(user_id=make_user().id) for _ in range(4)]
    rng = random.Random(7)

    for _ in range(40):
        voter = rng.choice(voters)
        if rng.random() < 0.2:
            retract_vote(store, voter, target)
        else:
            cast_vote(store, voter, target, rng.choice(["upvote", "downvote"]))

    ups = db_session.execute(
        select(func.count()).select_from(Vote).where(Vote.target_id == test_post.id, Vote.type == "upvote")
    ).scalar_one()
    downs = db_session.execute(
        select(func.count()).select_from(Vote).where(Vote.target_id == test_post.id, Vote.type == "downvote")
    ).scalar_one()
    db_session.refresh(test_post)
    assert test_post.upvotes == ups
    assert test_post.downvotes == downs
    assert test_post.score == ups - downs
    assert _vote_rows(db_session, target) <= len(voters)


def test_comment_votes_are_tracked_separately(store, actor, test_post, make_comment, db_session) -> None:
    comment = make_comment()
    tally = cast_vote(store, actor, VoteTarget.comment(comment.id), "downvote")
    assert tally.score == -1
    db_session.refresh(test_post)
    assert test_post.score == 0


def test_retract_reverses_contribution(store, actor, test_post) -> None:
    target = VoteTarget.post(test_post.id)
    cast_vote(store, actor, target, "downvote")
    tally = retract_vote(store, actor, target)
    assert (tally.upvotes, tally.downvotes, tally.score) == (0, 0, 0)
    assert tally.my_vote is None
    assert get_my_vote(store, actor, target) is None


def test_retract_without_vote_is_noop(store, actor, test_post) -> None:
    tally = retract_vote(store, actor, VoteTarget.post(test_post.id))
    assert tally.score == 0


def test_vote_on_inactive_post(store, actor, make_post) -> None:
    post = make_post(is_active=False)
    with pytest.raises(NotFound):
        cast_vote(store, actor, VoteTarget.post(post.id), "upvote")


def test_vote_on_missing_comment(store, actor, test_post) -> None:
    with pytest.raises(NotFound):
        cast_vote(store, actor, VoteTarget.comment(424242), "upvote")


def test_unknown_vote_type(store, actor, test_post) -> None:
    with pytest.raises(ValidationFailure):
        cast_vote(store, actor, VoteTarget.post(test_post.id), "sidevote")


def test_unknown_target_type() -> None:
    with pytest.raises(ValidationFailure):
        VoteTarget("channel", 1)


def test_self_vote_allowed_without_notification(store, actor, test_post, db_session) -> None:
    cast_vote(store, actor, VoteTarget.post(test_post.id), "upvote")
    assert db_session.execute(select(func.count()).select_from(Notification)).scalar_one() == 0


def test_vote_notifies_author(store, other_actor, test_post, test_user, db_session) -> None:
    cast_vote(store, other_actor, VoteTarget.post(test_post.id), "upvote")
    notification = db_session.execute(select(Notification)).scalar_one()
    assert notification.user_id == test_user.id
    assert notification.type == "post_vote"
    assert notification.post_id == test_post.id


@pytest.fixture()
def second_store(engine, db_session):
    """A store on its own session, standing in for a concurrent request by the same user."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield EntityStore(session)
    finally:
        session.rollback()
        session.close()


def test_stale_flip_is_applied_once(store, second_store, actor, test_post, db_session) -> None:
    target = VoteTarget.post(test_post.id)
    cast_vote(store, actor, target, "upvote")
    stale = second_store.find_one(Vote, user_id=actor.user_id, target_id=test_post.id)
    assert stale.type == "upvote"

    cast_vote(store, actor, target, "downvote")
    tally = cast_vote(second_store, actor, target, "downvote")

    assert (tally.upvotes, tally.downvotes, tally.score) == (0, 1, -1)
    db_session.refresh(test_post)
    assert (test_post.upvotes, test_post.downvotes, test_post.score) == (0, 1, -1)
    assert _vote_rows(db_session, target) == 1


def test_stale_retract_removes_current_vote(store, second_store, actor, test_post, db_session) -> None:
    target = VoteTarget.post(test_post.id)
    cast_vote(store, actor, target, "upvote")
    second_store.find_one(Vote, user_id=actor.user_id, target_id=test_post.id)

    cast_vote(store, actor, target, "downvote")
    tally = retract_vote(second_store, actor, target)

    assert (tally.upvotes, tally.downvotes, tally.score) == (0, 0, 0)
    assert _vote_rows(db_session, target) == 0


def test_lost_insert_race_reapplies_once(store, second_store, actor, test_post, db_session, mocker) -> None:
    target = VoteTarget.post(test_post.id)
    real_find = votes_module._find_vote
    lookups = []

    def first_lookup_misses(lookup_store, user_id, lookup_target):
        lookups.append(user_id)
        if len(lookups) == 1:
            return None
        return real_find(lookup_store, user_id, lookup_target)

    cast_vote(second_store, actor, target, "upvote")
    mocker.patch.object(votes_module, "_find_vote", side_effect=first_lookup_misses)
    tally = cast_vote(store, actor, target, "downvote")

    assert len(lookups) == 2
    assert tally.my_vote == "downvote"
    assert _vote_rows(db_session, target) == 1
    db_session.refresh(test_post)
    assert (test_post.upvotes, test_post.downvotes) == (0, 1)
    assert test_post.score == test_post.upvotes - test_post.downvotes
