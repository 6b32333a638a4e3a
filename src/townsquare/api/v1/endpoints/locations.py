"""Location and location-membership endpoints."""

from fastapi import APIRouter, Response, status

from townsquare.models import Channel, Location, UserLocation
from townsquare.schemas.channel import ChannelCreate, ChannelResponse
from townsquare.schemas.location import (
    LocationCreate,
    LocationMembershipRequest,
    LocationMembershipResponse,
    LocationResponse,
    LocationUpdate,
)
from townsquare.services import channels as channel_service
from townsquare.services import locations as location_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("/", response_model=list[LocationResponse])
async def list_locations(store: StoreDep) -> list[Location]:
    """List active locations by name."""
    return location_service.list_locations(store)


@router.post("/", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Location:
    return location_service.create_location(store, actor, location_data)


@router.get("/{slug}", response_model=LocationResponse)
async def get_location(slug: str, store: StoreDep) -> Location:
    """Get a location by its URL slug."""
    return location_service.get_location_by_slug(store, slug)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: int,
    location_data: LocationUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Location:
    return location_service.update_location(store, actor, location_id, location_data)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_location(
    location_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    location_service.deactivate_location(store, actor, location_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{location_id}/membership",
    response_model=LocationMembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_location(
    location_id: int,
    membership_data: LocationMembershipRequest,
    actor: CurrentActorDep,
    store: StoreDep,
) -> UserLocation:
    """Join a location, optionally as the caller's primary location."""
    return location_service.join_location(
        store, actor, location_id, is_primary=membership_data.is_primary
    )


@router.delete("/{location_id}/membership", status_code=status.HTTP_204_NO_CONTENT)
async def leave_location(
    location_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Response:
    location_service.leave_location(store, actor, location_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{location_id}/channels", response_model=list[ChannelResponse])
async def list_channels(location_id: int, store: StoreDep) -> list[Channel]:
    """List active channels of a location, largest first."""
    return channel_service.list_channels(store, location_id)


@router.post(
    "/{location_id}/channels",
    response_model=ChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_channel(
    location_id: int,
    channel_data: ChannelCreate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Channel:
    """Create a channel; the caller becomes its admin."""
    return channel_service.create_channel(store, actor, location_id, channel_data)


@router.get("/{location_id}/channels/{slug}", response_model=ChannelResponse)
async def get_channel(location_id: int, slug: str, store: StoreDep) -> Channel:
    return channel_service.get_channel_by_slug(store, location_id, slug)
