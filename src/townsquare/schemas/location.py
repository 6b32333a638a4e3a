"""Location-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Fields only the admin group may set.
ADMIN_ONLY_LOCATION_FIELDS = frozenset({"latitude", "longitude", "timezone"})


class LocationCreate(BaseModel):
    """Schema for creating a new location; the slug is derived from ``name``."""

    name: str = Field(..., min_length=1, max_length=120)
    state: str | None = Field(None, max_length=120)
    country: str = Field("United States", max_length=120)
    description: str | None = Field(None, max_length=5000)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    timezone: str | None = None


class LocationUpdate(BaseModel):
    """Partial update; set ``regenerate_slug`` to re-derive the slug from a new name."""

    name: str | None = Field(None, min_length=1, max_length=120)
    state: str | None = None
    country: str | None = None
    description: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    timezone: str | None = None
    regenerate_slug: bool = False


class LocationResponse(BaseModel):
    """Schema for location information returned by the API."""

    id: int
    name: str
    slug: str
    description: str | None
    state: str | None
    country: str
    latitude: float | None
    longitude: float | None
    timezone: str | None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LocationMembershipRequest(BaseModel):
    is_primary: bool = False


class LocationMembershipResponse(BaseModel):
    id: int
    user_id: str
    location_id: int
    is_primary: bool
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)
