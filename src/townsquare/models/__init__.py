"""SQLAlchemy models for the Townsquare application."""

from .channel import Channel, ChannelMembership
from .comment import Comment
from .location import Location, UserLocation
from .notification import Notification
from .post import Post
from .user import UserProfile
from .vote import Vote

__all__ = [
    "Channel", "ChannelMembership",
    "Comment",
    "Location", "UserLocation",
    "Notification",
    "Post",
    "UserProfile",
    "Vote",
]
