"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .channel import ChannelCreate, ChannelResponse, ChannelUpdate, MembershipResponse
from .comment import CommentCreate, CommentNodeResponse, CommentResponse, CommentUpdate
from .common import AuthorSummary, ChannelSummary, ErrorResponse
from .feed import FeedPage
from .location import LocationCreate, LocationResponse, LocationUpdate
from .notification import NotificationResponse
from .post import PostCreate, PostResponse, PostSummary, PostUpdate
from .user import ProfileCreate, ProfileResponse, ProfileUpdate
from .vote import VoteCast, VoteTallyResponse

__all__ = [
    "ChannelCreate", "ChannelResponse", "ChannelUpdate", "MembershipResponse",
    "CommentCreate", "CommentNodeResponse", "CommentResponse", "CommentUpdate",
    "AuthorSummary", "ChannelSummary", "ErrorResponse",
    "FeedPage",
    "LocationCreate", "LocationResponse", "LocationUpdate",
    "NotificationResponse",
    "PostCreate", "PostResponse", "PostSummary", "PostUpdate",
    "ProfileCreate", "ProfileResponse", "ProfileUpdate",
    "VoteCast", "VoteTallyResponse",
]
