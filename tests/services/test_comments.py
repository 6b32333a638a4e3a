# mypy: ignore-errors
"""Tests for comment threading and the comment write paths."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

from townsquare.core.errors import CycleDetected, Forbidden, NotFound, ValidationFailure
from townsquare.models import Notification
from townsquare.schemas.comment import CommentCreate, CommentUpdate
from townsquare.services.comments import (
    build_tree,
    create_comment,
    deactivate_comment,
    thread,
    update_comment,
)

T0 = datetime(2026, 10, 1, tzinfo=UTC)


def _shape(nodes):
    return [(node.comment.content, node.depth) for node in nodes]


def test_pre_order_with_sorted_siblings(store, test_post, make_comment) -> None:
    low_root = make_comment("low root", score=1, created_at=T0)
    high_root = make_comment("high root", score=4, created_at=T0)
    make_comment("reply old", parent=high_root, created_at=T0)
    newer_reply = make_comment("reply new", parent=high_root, created_at=T0 + timedelta(minutes=5))
    make_comment("nested", parent=newer_reply, created_at=T0)
    make_comment("low reply", parent=low_root, created_at=T0)

    assert _shape(build_tree(store, test_post.id)) == [
        ("high root", 0),
        ("reply old", 1),
        ("reply new", 1),
        ("nested", 2),
        ("low root", 0),
        ("low reply", 1),
    ]


def test_equal_siblings_fall_back_to_id(store, test_post, make_comment) -> None:
    first = make_comment("first", created_at=T0)
    second = make_comment("second", created_at=T0)
    nodes = build_tree(store, test_post.id)
    assert [node.comment.id for node in nodes] == [first.id, second.id]


def test_equal_scores_read_oldest_first(store, test_post, make_comment) -> None:
    make_comment("new", created_at=T0 + timedelta(hours=5))
    make_comment("old", created_at=T0)
    assert [node.comment.content for node in build_tree(store, test_post.id)] == ["old", "new"]


def test_every_reply_follows_its_parent(store, test_post, make_comment) -> None:
    parents = [make_comment(f"root {i}", score=i) for i in range(3)]
    for i, parent in enumerate(parents):
        child = make_comment(f"child {i}", parent=parent)
        make_comment(f"grandchild {i}", parent=child)

    nodes = build_tree(store, test_post.id)
    position = {node.comment.id: index for index, node in enumerate(nodes)}
    depth = {node.comment.id: node.depth for node in nodes}
    for node in nodes:
        parent_id = node.comment.parent_comment_id
        if parent_id is None:
            assert node.depth == 0
        else:
            assert position[parent_id] < position[node.comment.id]
            assert depth[parent_id] == node.depth - 1


def test_replies_under_inactive_parent_are_omitted(store, test_post, make_comment) -> None:
    make_comment("kept")
    gone = make_comment("gone", is_active=False)
    orphan = make_comment("orphan", parent=gone)
    make_comment("orphan child", parent=orphan)

    assert _shape(build_tree(store, test_post.id)) == [("kept", 0)]


def test_cycle_is_detected(store, test_post, make_comment, db_session) -> None:
    first = make_comment("first")
    second = make_comment("second", parent=first)
    first.parent_comment_id = second.id
    db_session.commit()

    with pytest.raises(CycleDetected):
        build_tree(store, test_post.id)


def test_self_parent_is_a_cycle(store, test_post, make_comment, db_session) -> None:
    looped = make_comment("looped")
    looped.parent_comment_id = looped.id
    db_session.commit()

    with pytest.raises(CycleDetected):
        build_tree(store, test_post.id)


def test_tree_of_missing_post(store) -> None:
    with pytest.raises(NotFound):
        build_tree(store, 31337)


def test_thread_hydrates_authors(store, test_post, make_comment) -> None:
    make_comment("hello")
    nodes = thread(store, test_post.id)
    assert nodes[0].author.username == "alice"
    assert nodes[0].depth == 0


def test_create_and_deactivate_track_comment_count(store, actor, test_post, db_session) -> None:
    comment = create_comment(store, actor, test_post.id, CommentCreate(content="first!"))
    reply = create_comment(
        store, actor, test_post.id, CommentCreate(content="reply", parent_comment_id=comment.id)
    )
    db_session.refresh(test_post)
    assert test_post.comment_count == 2
    assert reply.parent_comment_id == comment.id

    deactivate_comment(store, actor, reply.id)
    db_session.refresh(test_post)
    assert test_post.comment_count == 1


def test_parent_must_belong_to_same_post(store, actor, make_post, test_post) -> None:
    other_post = make_post("other")
    foreign = create_comment(store, actor, other_post.id, CommentCreate(content="elsewhere"))
    with pytest.raises(ValidationFailure):
        create_comment(
            store, actor, test_post.id, CommentCreate(content="x", parent_comment_id=foreign.id)
        )


def test_locked_post_rejects_comments(store, actor, test_post, db_session) -> None:
    test_post.is_locked = True
    db_session.commit()
    with pytest.raises(ValidationFailure):
        create_comment(store, actor, test_post.id, CommentCreate(content="too late"))


def test_comment_and_reply_notifications(
    store, actor, other_actor, test_post, test_user, other_user, db_session
) -> None:
    root = create_comment(store, other_actor, test_post.id, CommentCreate(content="nice post"))
    create_comment(
        store, actor, test_post.id, CommentCreate(content="thanks", parent_comment_id=root.id)
    )

    notifications = db_session.execute(select(Notification).order_by(Notification.id)).scalars().all()
    assert [(n.user_id, n.type) for n in notifications] == [
        (test_user.id, "post_comment"),
        (other_user.id, "comment_reply"),
    ]


def test_only_author_may_edit(store, actor, other_actor, test_post) -> None:
    comment = create_comment(store, actor, test_post.id, CommentCreate(content="draft"))
    with pytest.raises(Forbidden):
        update_comment(store, other_actor, comment.id, CommentUpdate(content="hijack"))
    updated = update_comment(store, actor, comment.id, CommentUpdate(content="final"))
    assert updated.content == "final"
