"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuthorSummary(BaseModel):
    """Denormalized author attached to posts and comments."""

    id: str
    username: str
    display_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ChannelSummary(BaseModel):
    """Denormalized channel attached to feed items outside a channel scope."""

    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Body returned for every domain failure."""

    detail: str = Field(..., description="Short human-readable message")
    code: str = Field(..., description="Machine-readable error kind")
