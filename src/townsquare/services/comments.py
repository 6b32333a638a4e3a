"""Comment threads: tree assembly and the comment write paths."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from townsquare.core.errors import CycleDetected, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import Comment, Post, UserProfile
from townsquare.models.notification import NOTIFY_COMMENT_REPLY, NOTIFY_POST_COMMENT
from townsquare.schemas.comment import CommentCreate, CommentNodeResponse, CommentResponse, CommentUpdate
from townsquare.schemas.common import AuthorSummary
from townsquare.services.notifications import notify
from townsquare.services.policy import Resource, authorize
from townsquare.services.store import EntityStore, retry_read
from townsquare.services.users import require_profile

logger = logging.getLogger(__name__)

_REACHABLE = "reachable"
_ORPHANED = "orphaned"


@dataclass(frozen=True)
class CommentNode:
    comment: Comment
    depth: int


def _sibling_key(comment: Comment) -> tuple:
    return (-comment.score, comment.created_at, comment.id)


def _classify(by_id: dict[int, Comment]) -> dict[int, str]:
    """Mark every comment as reachable from a root or orphaned.

    Raises:
        CycleDetected: If some parent chain revisits one of its own comments.
    """
    status: dict[int, str] = {}
    for comment in by_id.values():
        path: list[int] = []
        on_path: set[int] = set()
        node = comment
        while True:
            if node.id in status:
                result = status[node.id]
                break
            if node.id in on_path:
                logger.error("Comment parent cycle through comment %s", node.id)
                raise CycleDetected()
            on_path.add(node.id)
            path.append(node.id)
            if node.parent_comment_id is None:
                result = _REACHABLE
                break
            parent = by_id.get(node.parent_comment_id)
            if parent is None:
                result = _ORPHANED
                break
            node = parent
        for comment_id in path:
            status[comment_id] = result
    return status


def build_tree(store: EntityStore, post_id: int) -> list[CommentNode]:
    """Return the active comments of a post as a depth-first pre-order list.

    Roots come first at depth 0, each followed by its replies. Siblings are
    ordered by score descending, then oldest first, then by id. Replies whose
    parent is inactive or missing are dropped along with their subtree.

    Raises:
        NotFound: If the post is missing or inactive.
        CycleDetected: If the stored parent links form a loop.
    """
    store.get_active(Post, post_id, "Post")
    comments = retry_read(lambda: store.list(Comment, {"post_id": post_id, "is_active": True}))
    by_id = {comment.id: comment for comment in comments}
    status = _classify(by_id)

    children: dict[int | None, list[Comment]] = defaultdict(list)
    for comment in comments:
        if status[comment.id] == _REACHABLE:
            children[comment.parent_comment_id].append(comment)
    for siblings in children.values():
        siblings.sort(key=_sibling_key)

    ordered: list[CommentNode] = []
    stack = [(root, 0) for root in reversed(children[None])]
    while stack:
        comment, depth = stack.pop()
        ordered.append(CommentNode(comment, depth))
        stack.extend((child, depth + 1) for child in reversed(children.get(comment.id, [])))
    return ordered


def thread(store: EntityStore, post_id: int) -> list[CommentNodeResponse]:
    """``build_tree`` hydrated with author summaries for the API."""
    nodes = build_tree(store, post_id)
    author_ids = {node.comment.author_id for node in nodes}
    authors = {
        profile.id: AuthorSummary.model_validate(profile)
        for profile in store.list(UserProfile, extra=[UserProfile.id.in_(author_ids)])
    }
    return [
        CommentNodeResponse(
            **CommentResponse.model_validate(node.comment).model_dump(),
            depth=node.depth,
            author=authors.get(node.comment.author_id),
        )
        for node in nodes
    ]


def create_comment(
    store: EntityStore,
    actor: Actor,
    post_id: int,
    data: CommentCreate,
) -> Comment:
    """Add a comment or reply to an unlocked post.

    Raises:
        NotFound: If the post is missing or inactive.
        ValidationFailure: If the post is locked or the parent is not an
            active comment of the same post.
    """
    authorize(actor, "create", Resource("comment", owner_id=actor.user_id))
    require_profile(store, actor)
    post = store.get_active(Post, post_id, "Post")
    if post.is_locked:
        raise ValidationFailure("Post is locked")

    parent: Comment | None = None
    if data.parent_comment_id is not None:
        parent = store.get(Comment, data.parent_comment_id)
        if parent is None or not parent.is_active or parent.post_id != post.id:
            raise ValidationFailure("Parent comment not found in this post")

    comment = store.create(
        Comment,
        {
            "post_id": post.id,
            "author_id": actor.user_id,
            "parent_comment_id": data.parent_comment_id,
            "content": data.content,
        },
    )
    store.increment(Post, post.id, comment_count=1)

    if parent is not None:
        notify(
            store,
            parent.author_id,
            NOTIFY_COMMENT_REPLY,
            title="New reply to your comment",
            message=data.content[:200],
            actor_id=actor.user_id,
            post_id=post.id,
            comment_id=comment.id,
        )
    else:
        notify(
            store,
            post.author_id,
            NOTIFY_POST_COMMENT,
            title="New comment on your post",
            message=data.content[:200],
            actor_id=actor.user_id,
            post_id=post.id,
            comment_id=comment.id,
            channel_id=post.channel_id,
        )
    store.commit()
    logger.info("Comment %s created on post %s by %s", comment.id, post.id, actor.user_id)
    return comment


def update_comment(
    store: EntityStore,
    actor: Actor,
    comment_id: int,
    data: CommentUpdate,
) -> Comment:
    comment = store.get_active(Comment, comment_id, "Comment")
    authorize(actor, "update", comment)
    store.update(comment, {"content": data.content})
    store.commit()
    return comment


def deactivate_comment(store: EntityStore, actor: Actor, comment_id: int) -> None:
    """Soft-delete a comment and release its slot in the post's ``comment_count``."""
    comment = store.get_active(Comment, comment_id, "Comment")
    authorize(actor, "delete", comment)
    store.update(comment, {"is_active": False})
    store.increment(Post, comment.post_id, comment_count=-1)
    store.commit()
    logger.info("Comment %s deactivated by %s", comment_id, actor.user_id)
