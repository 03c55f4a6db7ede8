"""Notification response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    related_user_id: int | None = None
    meeting_id: int | None = None
    cab_booking_id: int | None = None
    data: dict[str, Any] = {}
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    unread_count: int
    has_more: bool


class UnreadCountResponse(BaseModel):
    count: int
