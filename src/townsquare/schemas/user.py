"""User profile Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_USERNAME_ALPHABET = set("abcdefghijklmnopqrstuvwxyz0123456789_-")


class ProfileCreate(BaseModel):
    """Self-registration payload; the profile id is the caller's token subject."""

    username: str = Field(..., min_length=3, max_length=32)
    email: str = Field(..., min_length=3, max_length=320)
    display_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=2000)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Usernames are lowercase letters, digits, underscores and hyphens."""
        v = v.strip().lower()
        if not set(v) <= _USERNAME_ALPHABET:
            raise ValueError("Username may only contain letters, digits, '_' and '-'")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("Email address must contain '@'")
        return v.strip()


class ProfileUpdate(BaseModel):
    """Partial profile update; username is immutable."""

    display_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = None


class ProfileResponse(BaseModel):
    """Public profile view."""

    id: str
    username: str
    display_name: str | None
    bio: str | None
    avatar_url: str | None
    joined_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
