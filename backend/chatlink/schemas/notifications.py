"""Schemas for the notification ledger."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatlink.models.enums import NotificationType


class NotificationRead(BaseModel):
    """Single notification record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int


class NotificationSettingsRead(BaseModel):
    """Notification toggles for a user."""

    model_config = ConfigDict(from_attributes=True)

    push_notifications: bool = True
    message_notifications: bool = True
    friend_request_notifications: bool = True


class NotificationSettingsUpdate(BaseModel):
    """Partial update of notification toggles."""

    push_notifications: bool | None = None
    message_notifications: bool | None = None
    friend_request_notifications: bool | None = None
