"""Notification Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime
    post_id: int | None
    comment_id: int | None
    channel_id: int | None
    location_id: int | None

    model_config = ConfigDict(from_attributes=True)
