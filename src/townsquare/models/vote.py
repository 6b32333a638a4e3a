"""Model capturing votes on posts and comments."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from townsquare.db.session import Base
from townsquare.db.time import utcnow

VOTE_UP = "upvote"
VOTE_DOWN = "downvote"
VOTE_TYPES = (VOTE_UP, VOTE_DOWN)

TARGET_POST = "post"
TARGET_COMMENT = "comment"
TARGET_TYPES = (TARGET_POST, TARGET_COMMENT)


class Vote(Base):
    """Per-user vote on exactly one post or comment.

    The target is a tagged reference ``(target_type, target_id)`` rather than
    two nullable foreign keys, so "exactly one target" holds by construction.
    """

    __tablename__ = "vote"
    __table_args__ = (
        # One vote per user per target.
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_vote_user_target"),
        CheckConstraint("type IN ('upvote', 'downvote')", name="ck_vote_type"),
        CheckConstraint("target_type IN ('post', 'comment')", name="ck_vote_target_type"),
        Index("ix_vote_target", "target_type", "target_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("user_profile.id", ondelete="CASCADE"), nullable=False
    )
    target_type: Mapped[str] = mapped_column(String(8), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(8), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
