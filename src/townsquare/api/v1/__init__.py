"""Version 1 API endpoints."""

from .endpoints import (
    channels_router,
    comments_router,
    feed_router,
    locations_router,
    notifications_router,
    posts_router,
    users_router,
    votes_router,
)

__all__ = [
    "users_router",
    "locations_router",
    "channels_router",
    "posts_router",
    "comments_router",
    "votes_router",
    "feed_router",
    "notifications_router",
]
