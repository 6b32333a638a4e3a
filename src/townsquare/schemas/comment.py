"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from townsquare.schemas.common import AuthorSummary


class CommentCreate(BaseModel):
    """Schema for creating a comment or a reply."""

    content: str = Field(..., min_length=1, max_length=10000)
    parent_comment_id: int | None = Field(None, description="Comment being replied to")


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int
    author_id: str
    parent_comment_id: int | None
    content: str
    is_active: bool
    upvotes: int
    downvotes: int
    score: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentNodeResponse(CommentResponse):
    """Comment positioned in a thread; ``depth`` 0 is a top-level comment."""

    depth: int
    author: AuthorSummary | None = None
