"""Feed endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from townsquare.schemas.feed import FeedPage
from townsquare.services.feed import FeedScope, compose_feed

from ..dependencies import StoreDep

router = APIRouter(prefix="/feed", tags=["feed"])

CursorQuery = Annotated[str | None, Query(description="next_cursor of the previous page")]
LimitQuery = Annotated[int | None, Query(description="Page size; clamped to the server maximum")]


@router.get("/all", response_model=FeedPage)
async def all_feed(store: StoreDep, cursor: CursorQuery = None, limit: LimitQuery = None) -> FeedPage:
    """All active posts ranked by score."""
    return compose_feed(store, FeedScope.all(), cursor, limit)


@router.get("/popular", response_model=FeedPage)
async def popular_feed(
    store: StoreDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> FeedPage:
    """Top posts created within the popular window."""
    return compose_feed(store, FeedScope.popular(), cursor, limit)


@router.get("/channels/{channel_id}", response_model=FeedPage)
async def channel_feed(
    channel_id: int,
    store: StoreDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> FeedPage:
    return compose_feed(store, FeedScope.channel(channel_id), cursor, limit)


@router.get("/locations/{location_id}", response_model=FeedPage)
async def location_feed(
    location_id: int,
    store: StoreDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> FeedPage:
    return compose_feed(store, FeedScope.location(location_id), cursor, limit)
