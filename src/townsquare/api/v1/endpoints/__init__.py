"""API endpoint modules for version 1."""

from .channels import router as channels_router
from .comments import router as comments_router
from .feed import router as feed_router
from .locations import router as locations_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "channels_router",
    "comments_router",
    "feed_router",
    "locations_router",
    "notifications_router",
    "posts_router",
    "users_router",
    "votes_router",
]
