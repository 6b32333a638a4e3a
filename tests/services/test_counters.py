# mypy: ignore-errors
"""Tests for counter reconciliation."""

from sqlalchemy import update

from townsquare.models import Channel, Post
from townsquare.schemas.comment import CommentCreate
from townsquare.services.comments import create_comment
from townsquare.services.counters import reconcile_counters
from townsquare.services.votes import VoteTarget, cast_vote


def test_consistent_counters_need_no_fix(db_session, store, actor, other_actor, test_post) -> None:
    cast_vote(store, other_actor, VoteTarget.post(test_post.id), "upvote")
    create_comment(store, actor, test_post.id, CommentCreate(content="hi"))

    assert reconcile_counters(db_session) == 0


def test_drifted_counters_are_restored(db_session, store, actor, other_actor, channel, test_post, caplog) -> None:
    cast_vote(store, other_actor, VoteTarget.post(test_post.id), "downvote")
    db_session.execute(
        update(Post)
        .where(Post.id == test_post.id)
        .values(upvotes=10, downvotes=0, score=10, comment_count=3)
    )
    db_session.execute(update(Channel).where(Channel.id == channel.id).values(member_count=7))
    db_session.commit()

    with caplog.at_level("WARNING", logger="townsquare.services.counters"):
        fixed = reconcile_counters(db_session)

    assert fixed == 2
    db_session.refresh(test_post)
    db_session.refresh(channel)
    assert (test_post.upvotes, test_post.downvotes, test_post.score) == (0, 1, -1)
    assert test_post.comment_count == 0
    assert channel.member_count == 1
    assert channel.post_count == 1
    assert any("Counter drift" in record.message for record in caplog.records)
