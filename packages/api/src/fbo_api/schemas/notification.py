# This project was developed with assistance from AI tools.
"""In-app notification schemas."""

from datetime import datetime

from db.enums import NotificationType
from pydantic import BaseModel, ConfigDict


class NotificationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int | None = None
    notification_type: NotificationType
    title: str
    message: str
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    count: int
    data: list[NotificationItem]
