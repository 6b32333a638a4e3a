"""Model for user notifications created as side effects of content events."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from townsquare.db.session import Base
from townsquare.db.time import utcnow

NOTIFY_POST_COMMENT = "post_comment"
NOTIFY_COMMENT_REPLY = "comment_reply"
NOTIFY_POST_VOTE = "post_vote"
NOTIFY_COMMENT_VOTE = "comment_vote"
NOTIFY_CHANNEL_NEW_POST = "channel_new_post"
NOTIFY_LOCATION_NEW_CHANNEL = "location_new_channel"
NOTIFICATION_TYPES = (
    NOTIFY_POST_COMMENT,
    NOTIFY_COMMENT_REPLY,
    NOTIFY_POST_VOTE,
    NOTIFY_COMMENT_VOTE,
    NOTIFY_CHANNEL_NEW_POST,
    NOTIFY_LOCATION_NEW_CHANNEL,
)


class Notification(Base):
    """Message addressed to one user; only ``is_read`` is mutable by the recipient."""

    __tablename__ = "notification"
    __table_args__ = (
        CheckConstraint(
            "type IN ('post_comment', 'comment_reply', 'post_vote', 'comment_vote', "
            "'channel_new_post', 'location_new_channel')",
            name="ck_notification_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("user_profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Related entities for navigation; no foreign keys so history survives deletes.
    post_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    channel_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
