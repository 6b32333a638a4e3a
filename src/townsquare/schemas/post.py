"""Post-related Pydantic schemas."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from townsquare.schemas.common import AuthorSummary, ChannelSummary

# Variant fields default to empty so shape errors surface from the service
# layer as InvalidPostShape rather than as generic schema errors.


class TextContent(BaseModel):
    """Markdown text post."""

    type: Literal["text"] = "text"
    body: str = Field("", max_length=40000)


class ImageContent(BaseModel):
    """Image post; URLs point into external object storage."""

    type: Literal["image"] = "image"
    urls: list[str] = Field(default_factory=list, max_length=20)
    alt_texts: list[str] = Field(default_factory=list, max_length=20)


class LinkContent(BaseModel):
    """Link post with optional preview metadata."""

    type: Literal["link"] = "link"
    url: str = ""
    title: str | None = None
    description: str | None = None
    image_url: str | None = None


PostContent = Annotated[TextContent | ImageContent | LinkContent, Field(discriminator="type")]


class PostCreate(BaseModel):
    """Schema for creating a post in a channel.

    ``location_id`` is optional; when given it must match the channel's location.
    """

    title: str = Field(..., min_length=1, max_length=300)
    content: PostContent
    location_id: int | None = None


class PostUpdate(BaseModel):
    """Author edit; the variant type may not change."""

    title: str | None = Field(None, min_length=1, max_length=300)
    content: PostContent | None = None


class PostFlagsUpdate(BaseModel):
    """Moderator-only flags."""

    is_pinned: bool | None = None
    is_locked: bool | None = None


def content_from_row(post: object) -> dict[str, object]:
    """Build the tagged content variant from a post row's column groups."""
    kind = getattr(post, "type", "text")
    if kind == "image":
        return {
            "type": "image",
            "urls": list(getattr(post, "image_urls", None) or []),
            "alt_texts": list(getattr(post, "image_alt_texts", None) or []),
        }
    if kind == "link":
        return {
            "type": "link",
            "url": getattr(post, "link_url", None) or "",
            "title": getattr(post, "link_title", None),
            "description": getattr(post, "link_description", None),
            "image_url": getattr(post, "link_image_url", None),
        }
    return {"type": "text", "body": getattr(post, "body", None) or ""}


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    location_id: int
    channel_id: int
    author_id: str
    title: str
    content: PostContent
    is_active: bool
    is_pinned: bool
    is_locked: bool
    upvotes: int
    downvotes: int
    score: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _collect_content(cls, data: object) -> object:
        if not isinstance(data, dict):
            extracted: dict[str, object | None] = {}
            for field_name in cls.model_fields:
                if field_name != "content":
                    extracted[field_name] = getattr(data, field_name, None)
            extracted["content"] = content_from_row(data)
            data = extracted
        return data

    model_config = ConfigDict(from_attributes=True)


class PostSummary(PostResponse):
    """Feed item: a post hydrated with its author and, outside channel scope, its channel."""

    author: AuthorSummary
    channel: ChannelSummary | None = None
