"""Channel, channel-membership and post-creation endpoints."""

from fastapi import APIRouter, Response, status

from townsquare.models import Channel, ChannelMembership, Post
from townsquare.schemas.channel import ChannelResponse, ChannelUpdate, MembershipResponse
from townsquare.schemas.post import PostCreate, PostResponse
from townsquare.services import channels as channel_service
from townsquare.services import posts as post_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/channels", tags=["channels"])


@router.patch("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: int,
    channel_data: ChannelUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Channel:
    """Update a channel; only its creator may do so."""
    return channel_service.update_channel(store, actor, channel_id, channel_data)


@router.delete("/{channel_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_channel(
    channel_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    channel_service.deactivate_channel(store, actor, channel_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{channel_id}/membership",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_channel(
    channel_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> ChannelMembership:
    return channel_service.join_channel(store, actor, channel_id)


@router.delete("/{channel_id}/membership", status_code=status.HTTP_204_NO_CONTENT)
async def leave_channel(
    channel_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    channel_service.leave_channel(store, actor, channel_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{channel_id}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    channel_id: int,
    post_data: PostCreate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Post:
    """Publish a text, image or link post in a channel."""
    return post_service.create_post(store, actor, channel_id, post_data)
