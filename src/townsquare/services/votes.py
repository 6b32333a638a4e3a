"""Score aggregation: votes on posts and comments and the counters they drive."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from townsquare.core.errors import TransientStoreFailure, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Comment, Post, Vote
from townsquare.models.notification import NOTIFY_COMMENT_VOTE, NOTIFY_POST_VOTE
from townsquare.models.vote import TARGET_COMMENT, TARGET_POST, TARGET_TYPES, VOTE_TYPES, VOTE_UP
from townsquare.services.notifications import notify
from townsquare.services.policy import Resource, authorize
from townsquare.services.store import EntityStore
from townsquare.services.users import require_profile

logger = logging.getLogger(__name__)

# Counter contribution of one vote of each type.
_CONTRIBUTION: dict[str, dict[str, int]] = {
    "upvote": {"upvotes": 1, "score": 1},
    "downvote": {"downvotes": 1, "score": -1},
}


class ConcurrentVote(TransientStoreFailure):
    """Another request wrote this user's vote on the same target first."""


@dataclass(frozen=True)
class VoteTarget:
    """Tagged reference to the voted entity."""

    kind: str
    id: int

    def __post_init__(self) -> None:
        if self.kind not in TARGET_TYPES:
            raise ValidationFailure("Vote target must be a post or a comment")

    @classmethod
    def post(cls, post_id: int) -> VoteTarget:
        return cls(TARGET_POST, post_id)

    @classmethod
    def comment(cls, comment_id: int) -> VoteTarget:
        return cls(TARGET_COMMENT, comment_id)

    @property
    def model(self) -> type[Post] | type[Comment]:
        return Post if self.kind == TARGET_POST else Comment


@dataclass(frozen=True)
class VoteTally:
    """Counters of a target after a vote operation."""

    target: VoteTarget
    upvotes: int
    downvotes: int
    score: int
    my_vote: str | None


def counter_deltas(old: str | None, new: str | None) -> dict[str, int]:
    """Return the counter changes for moving a user's vote from ``old`` to ``new``.

    >>> counter_deltas("upvote", "downvote")
    {'upvotes': -1, 'score': -2, 'downvotes': 1}
    """
    deltas: Counter[str] = Counter()
    if old is not None:
        deltas.subtract(_CONTRIBUTION[old])
    if new is not None:
        deltas.update(_CONTRIBUTION[new])
    return {name: delta for name, delta in deltas.items() if delta}


def _load_target(store: EntityStore, target: VoteTarget) -> Post | Comment:
    return store.get_active(target.model, target.id, target.kind.capitalize())


def _find_vote(store: EntityStore, user_id: str, target: VoteTarget) -> Vote | None:
    return store.find_one(Vote, user_id=user_id, target_type=target.kind, target_id=target.id)


def _tally(store: EntityStore, target: VoteTarget, my_vote: str | None) -> VoteTally:
    entity = _load_target(store, target)
    return VoteTally(
        target=target,
        upvotes=entity.upvotes,
        downvotes=entity.downvotes,
        score=entity.score,
        my_vote=my_vote,
    )


def cast_vote(store: EntityStore, actor: Actor, target: VoteTarget, vote_type: str) -> VoteTally:
    """Record the actor's vote on ``target`` and update its counters.

    A first vote inserts a row; a vote of the other type flips the row in
    place; repeating the current vote is a no-op. Row write and counter
    update commit together. A flip only applies to the vote type that was
    read, so a request that raced another one re-applies once on the
    current row instead of moving the counters twice.

    Raises:
        NotFound: If the target is missing or inactive.
        ValidationFailure: If ``vote_type`` is unknown.
    """
    if vote_type not in VOTE_TYPES:
        raise ValidationFailure("Vote type must be 'upvote' or 'downvote'")
    authorize(actor, "create", Resource("vote", owner_id=actor.user_id))
    require_profile(store, actor)
    try:
        return _apply_vote(store, actor, target, vote_type)
    except ConcurrentVote:
        logger.info("Vote on %s %s raced for %s; retrying", target.kind, target.id, actor.user_id)
        return _apply_vote(store, actor, target, vote_type)


def _apply_vote(store: EntityStore, actor: Actor, target: VoteTarget, vote_type: str) -> VoteTally:
    entity = _load_target(store, target)
    existing = _find_vote(store, actor.user_id, target)

    if existing is not None and existing.type == vote_type:
        return _tally(store, target, vote_type)

    if existing is None:
        store.create(
            Vote,
            {
                "user_id": actor.user_id,
                "target_type": target.kind,
                "target_id": target.id,
                "type": vote_type,
            },
            conflict=ConcurrentVote(),
        )
        deltas = counter_deltas(None, vote_type)
        _notify_author(store, actor, target, entity, vote_type)
    else:
        authorize(actor, "update", existing)
        old_type = existing.type
        if not store.update_if(existing, {"type": old_type}, {"type": vote_type}):
            store.rollback()
            raise ConcurrentVote()
        deltas = counter_deltas(old_type, vote_type)
        logger.info("Flipped vote of %s on %s %s to %s", actor.user_id, target.kind, target.id, vote_type)

    store.increment(target.model, target.id, **deltas)
    store.commit()
    return _tally(store, target, vote_type)


def retract_vote(store: EntityStore, actor: Actor, target: VoteTarget) -> VoteTally:
    """Remove the actor's vote on ``target`` and reverse its counter contribution.

    Retracting when no vote exists is a no-op.
    """
    authorize(actor, "delete", Resource("vote", owner_id=actor.user_id))
    try:
        return _apply_retract(store, actor, target)
    except ConcurrentVote:
        logger.info("Vote retract raced for %s on %s %s; retrying", actor.user_id, target.kind, target.id)
        return _apply_retract(store, actor, target)


def _apply_retract(store: EntityStore, actor: Actor, target: VoteTarget) -> VoteTally:
    _load_target(store, target)
    existing = _find_vote(store, actor.user_id, target)
    if existing is None:
        return _tally(store, target, None)
    authorize(actor, "delete", existing)
    old_type = existing.type
    if not store.delete_if(existing, {"type": old_type}):
        store.rollback()
        raise ConcurrentVote()
    store.increment(target.model, target.id, **counter_deltas(old_type, None))
    store.commit()
    return _tally(store, target, None)


def get_my_vote(store: EntityStore, actor: Actor, target: VoteTarget) -> str | None:
    """Return the actor's current vote type on ``target``, or None."""
    authorize(actor, "read", Resource("vote", owner_id=actor.user_id))
    vote = _find_vote(store, actor.user_id, target)
    return vote.type if vote else None


def tally(store: EntityStore, actor: Actor, target: VoteTarget) -> VoteTally:
    """Return current counters of ``target`` with the actor's own vote."""
    return _tally(store, target, get_my_vote(store, actor, target))


def _notify_author(
    store: EntityStore,
    actor: Actor,
    target: VoteTarget,
    entity: Post | Comment,
    vote_type: str,
) -> None:
    verb = "upvoted" if vote_type == VOTE_UP else "downvoted"
    if target.kind == TARGET_POST:
        notify(
            store,
            entity.author_id,
            NOTIFY_POST_VOTE,
            title=f"Your post was {verb}",
            message=f'Someone {verb} "{entity.title}"',
            actor_id=actor.user_id,
            post_id=entity.id,
            channel_id=entity.channel_id,
            location_id=entity.location_id,
        )
    else:
        notify(
            store,
            entity.author_id,
            NOTIFY_COMMENT_VOTE,
            title=f"Your comment was {verb}",
            message=f"Someone {verb} your comment",
            actor_id=actor.user_id,
            post_id=entity.post_id,
            comment_id=entity.id,
        )
