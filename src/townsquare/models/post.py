"""SQLAlchemy model for posts."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from townsquare.db.session import Base
from townsquare.db.time import utcnow

POST_TYPE_TEXT = "text"
POST_TYPE_IMAGE = "image"
POST_TYPE_LINK = "link"
POST_TYPES = (POST_TYPE_TEXT, POST_TYPE_IMAGE, POST_TYPE_LINK)


class Post(Base):
    """Primary content entity, scored by votes.

    The body is a tagged variant keyed by ``type``; only the column group of
    the active variant is populated (``body`` for text, ``link_*`` for links,
    ``image_*`` for images).
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("type IN ('text', 'image', 'link')", name="ck_post_type"),
        CheckConstraint("type != 'text' OR body IS NOT NULL", name="ck_post_text_body"),
        CheckConstraint("type != 'link' OR link_url IS NOT NULL", name="ck_post_link_url"),
        CheckConstraint("score = upvotes - downvotes", name="ck_post_score"),
        CheckConstraint(
            "upvotes >= 0 AND downvotes >= 0 AND comment_count >= 0",
            name="ck_post_counters",
        ),
        Index("ix_post_feed_order", "score", "created_at", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("location.id"), nullable=False, index=True
    )
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channel.id"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("user_profile.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(8), nullable=False, default=POST_TYPE_TEXT)

    # Text variant.
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Link variant.
    link_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Image variant; URLs point into external object storage.
    image_urls: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    image_alt_texts: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
