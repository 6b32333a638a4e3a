"""Post and comment-thread endpoints."""

from fastapi import APIRouter, Response, status

from townsquare.models import Comment, Post
from townsquare.schemas.comment import CommentCreate, CommentNodeResponse, CommentResponse
from townsquare.schemas.post import PostFlagsUpdate, PostResponse, PostUpdate
from townsquare.services import comments as comment_service
from townsquare.services import posts as post_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, store: StoreDep) -> Post:
    return post_service.get_post(store, post_id)


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Post:
    """Edit the title or content of the caller's own post."""
    return post_service.update_post(store, actor, post_id, post_data)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    """Soft-delete the caller's own post."""
    post_service.deactivate_post(store, actor, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{post_id}/flags", response_model=PostResponse)
async def set_post_flags(
    post_id: int,
    flags: PostFlagsUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Post:
    """Pin or lock a post (channel moderators only)."""
    return post_service.set_post_flags(store, actor, post_id, flags)


@router.get("/{post_id}/comments", response_model=list[CommentNodeResponse])
async def get_comment_thread(post_id: int, store: StoreDep) -> list[CommentNodeResponse]:
    """Return the post's comments flattened in thread order with depths."""
    return comment_service.thread(store, post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Comment:
    return comment_service.create_comment(store, actor, post_id, comment_data)
