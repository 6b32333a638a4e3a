"""Feed Pydantic schemas."""

from pydantic import BaseModel, Field

from townsquare.schemas.post import PostSummary


class FeedPage(BaseModel):
    """One page of a ranked feed."""

    items: list[PostSummary]
    next_cursor: str | None = Field(
        None, description="Opaque cursor for the next page; null on the last page"
    )
