"""SQLAlchemy models for channels and channel memberships."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from townsquare.db.session import Base
from townsquare.db.time import utcnow

ROLE_MEMBER = "member"
ROLE_MODERATOR = "moderator"
ROLE_ADMIN = "admin"
MEMBERSHIP_ROLES = (ROLE_MEMBER, ROLE_MODERATOR, ROLE_ADMIN)
MODERATING_ROLES = (ROLE_MODERATOR, ROLE_ADMIN)


class Channel(Base):
    """Topic-scoped sub-community inside a location."""

    __tablename__ = "channel"
    __table_args__ = (
        # Slugs are unique per parent location, not globally.
        UniqueConstraint("location_id", "slug", name="uq_channel_location_slug"),
        CheckConstraint("member_count >= 0", name="ck_channel_member_count"),
        CheckConstraint("post_count >= 0", name="ck_channel_post_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("location.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Markdown rules shown on the channel page.
    rules: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_by: Mapped[str] = mapped_column(
        String(128), ForeignKey("user_profile.id"), nullable=False
    )

    # Denormalized counters; only changed by membership and post paths.
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    post_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ChannelMembership(Base):
    """Subscription of a user to a channel."""

    __tablename__ = "channel_membership"
    __table_args__ = (
        UniqueConstraint("user_id", "channel_id", name="uq_channel_membership_pair"),
        CheckConstraint(
            "role IN ('member', 'moderator', 'admin')", name="ck_channel_membership_role"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("user_profile.id", ondelete="CASCADE"), nullable=False
    )
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channel.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_MEMBER)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
