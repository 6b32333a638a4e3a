"""Comment edit and delete endpoints."""

from fastapi import APIRouter, Response, status

from townsquare.models import Comment
from townsquare.schemas.comment import CommentResponse, CommentUpdate
from townsquare.services import comments as comment_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.patch("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Comment:
    return comment_service.update_comment(store, actor, comment_id, comment_data)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    comment_service.deactivate_comment(store, actor, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
