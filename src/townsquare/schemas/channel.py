"""Channel-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChannelCreate(BaseModel):
    """Schema for creating a channel inside a location."""

    name: str = Field(..., min_length=1, max_length=80)
    description: str | None = Field(None, max_length=5000)
    rules: str | None = Field(None, max_length=20000)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = None
    is_private: bool = False


class ChannelUpdate(BaseModel):
    """Partial update; counters are never writable."""

    name: str | None = Field(None, min_length=1, max_length=80)
    description: str | None = None
    rules: str | None = None
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = None
    is_private: bool | None = None
    regenerate_slug: bool = False


class ChannelResponse(BaseModel):
    """Schema for channel information returned by the API."""

    id: int
    location_id: int
    name: str
    slug: str
    description: str | None
    rules: str | None
    color: str | None
    icon: str | None
    is_active: bool
    is_private: bool
    created_at: datetime
    created_by: str
    member_count: int
    post_count: int

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    id: int
    user_id: str
    channel_id: int
    role: str
    notifications_enabled: bool
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)
