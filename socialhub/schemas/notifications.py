"""Schemas for notifications."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .auth import UserPublicProfile


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    actor_id: UUID | None = None
    actor: UserPublicProfile | None = None
    type: str
    content: str
    related_id: UUID | None = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]


class NotificationSummaryResponse(BaseModel):
    unread_count: int = 0


class NotificationActionResponse(BaseModel):
    status: str
    chat_id: UUID | None = None


__all__ = [
    "NotificationResponse",
    "NotificationListResponse",
    "NotificationSummaryResponse",
    "NotificationActionResponse",
]
