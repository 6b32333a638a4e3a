"""Recompute denormalized counters from their source rows."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from townsquare.models import Channel, ChannelMembership, Comment, Post, Vote
from townsquare.models.vote import TARGET_COMMENT, TARGET_POST, VOTE_DOWN, VOTE_UP
from townsquare.services.store import EntityStore

logger = logging.getLogger(__name__)


def _counts(session: Session, column: Any, *where: Any) -> dict[Any, int]:
    stmt = select(column, func.count()).where(*where).group_by(column)
    return {key: count for key, count in session.execute(stmt)}


def _vote_counts(session: Session, target_type: str) -> dict[int, tuple[int, int]]:
    stmt = (
        select(
            Vote.target_id,
            func.sum(case((Vote.type == VOTE_UP, 1), else_=0)),
            func.sum(case((Vote.type == VOTE_DOWN, 1), else_=0)),
        )
        .where(Vote.target_type == target_type)
        .group_by(Vote.target_id)
    )
    return {target_id: (int(up or 0), int(down or 0)) for target_id, up, down in session.execute(stmt)}


def _fix(store: EntityStore, entity: Any, expected: dict[str, int]) -> bool:
    drift = {
        name: (getattr(entity, name), value)
        for name, value in expected.items()
        if getattr(entity, name) != value
    }
    if not drift:
        return False
    for name, (stored, actual) in drift.items():
        logger.warning(
            "Counter drift on %s %s: %s stored=%s actual=%s",
            entity.__tablename__,
            entity.id,
            name,
            stored,
            actual,
        )
    store.update(entity, expected)
    return True


def reconcile_counters(session: Session) -> int:
    """Rewrite every drifted counter and return how many rows were corrected."""
    store = EntityStore(session)
    members = _counts(session, ChannelMembership.channel_id)
    posts = _counts(session, Post.channel_id, Post.is_active.is_(True))
    comments = _counts(session, Comment.post_id, Comment.is_active.is_(True))
    post_votes = _vote_counts(session, TARGET_POST)
    comment_votes = _vote_counts(session, TARGET_COMMENT)

    fixed = 0
    for channel in store.list(Channel):
        fixed += _fix(
            store,
            channel,
            {"member_count": members.get(channel.id, 0), "post_count": posts.get(channel.id, 0)},
        )
    for post in store.list(Post):
        up, down = post_votes.get(post.id, (0, 0))
        fixed += _fix(
            store,
            post,
            {
                "upvotes": up,
                "downvotes": down,
                "score": up - down,
                "comment_count": comments.get(post.id, 0),
            },
        )
    for comment in store.list(Comment):
        up, down = comment_votes.get(comment.id, (0, 0))
        fixed += _fix(store, comment, {"upvotes": up, "downvotes": down, "score": up - down})

    store.commit()
    logger.info("Counter reconciliation corrected %d rows", fixed)
    return fixed
