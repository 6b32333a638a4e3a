"""Business logic services for the Townsquare application."""

from .comments import CommentNode, build_tree
from .feed import FeedComposer, FeedCursor, FeedScope, compose_feed
from .policy import Resource, authorize
from .slugs import SlugResolver, slugify
from .store import EntityStore, retry_read
from .votes import VoteTally, VoteTarget, cast_vote, retract_vote

__all__ = [
    "CommentNode",
    "EntityStore",
    "FeedComposer",
    "FeedCursor",
    "FeedScope",
    "Resource",
    "SlugResolver",
    "VoteTally",
    "VoteTarget",
    "authorize",
    "build_tree",
    "cast_vote",
    "compose_feed",
    "retract_vote",
    "retry_read",
    "slugify",
]
