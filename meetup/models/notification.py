from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

from .relationship import user_id_column


class NotificationType(str, Enum):
    FRIEND_REQUEST_CREATED = "friend_request_created"
    FRIEND_REQUEST_ACCEPTED = "friend_request_accepted"


class NotificationEvent(SQLModel):
    type: NotificationType
    target: str
    requester: str


class NotificationBase(SQLModel):
    user_id: str = Field(sa_column=user_id_column(index=True))
    type: NotificationType
    title: str = Field(max_length=100)
    message: str = Field(max_length=255)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Notification(NotificationBase, table=True):
    __tablename__ = "notifications"

    notification_id: Optional[int] = Field(default=None, primary_key=True)
    data: Optional[dict] = Field(default=None, sa_column=Column(JSON))


class NotificationPublic(NotificationBase):
    notification_id: int
    data: Optional[dict] = None
