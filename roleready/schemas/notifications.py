from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from roleready.schemas.common import NotificationType


class NotificationOut(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: str | None = None
    created_at: str
    updated_at: str


class NotificationListResponse(BaseModel):
    notifications: list[NotificationOut] = Field(default_factory=list)
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadRequest(BaseModel):
    notification_ids: list[str] | None = Field(default=None, max_length=500)


class MarkReadResponse(BaseModel):
    updated: int
