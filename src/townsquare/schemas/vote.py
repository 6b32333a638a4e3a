"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteCast(BaseModel):
    """Schema for casting or changing a vote."""

    type: Literal["upvote", "downvote"] = Field(..., description="Vote direction")


class VoteTallyResponse(BaseModel):
    """Counters of the voted target after the operation."""

    target_type: Literal["post", "comment"]
    target_id: int
    upvotes: int
    downvotes: int
    score: int
    my_vote: Literal["upvote", "downvote"] | None = None
