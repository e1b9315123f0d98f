"""Notification API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Notification, User
from ..schemas import (
    NotificationActionResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationSummaryResponse,
    UserPublicProfile,
)
from ..services import (
    accept_from_notification,
    count_unread_notifications,
    decline_from_notification,
    get_current_user,
    list_notifications,
    mark_all_read,
    mark_read,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_notification_response(record: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=record.id,
        recipient_id=record.recipient_id,
        actor_id=record.actor_id,
        actor=UserPublicProfile.model_validate(record.actor) if record.actor is not None else None,
        type=record.type,
        content=record.content,
        related_id=record.related_id,
        is_read=record.is_read,
        created_at=record.created_at,
    )


@router.get("/", response_model=NotificationListResponse)
async def list_my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationListResponse:
    records = list_notifications(db, current_user.id)
    return NotificationListResponse(items=[_to_notification_response(item) for item in records])


@router.get("/summary", response_model=NotificationSummaryResponse)
async def notification_summary_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationSummaryResponse:
    return NotificationSummaryResponse(unread_count=count_unread_notifications(db, current_user.id))


@router.post("/mark-read", response_model=NotificationSummaryResponse)
async def mark_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationSummaryResponse:
    mark_all_read(db, current_user.id)
    return NotificationSummaryResponse(unread_count=0)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationResponse:
    return _to_notification_response(mark_read(db, notification_id=notification_id, user=current_user))


@router.post("/{notification_id}/accept", response_model=NotificationActionResponse)
async def accept_notification_request(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationActionResponse:
    chat = accept_from_notification(db, notification_id=notification_id, user=current_user)
    return NotificationActionResponse(status="accepted", chat_id=chat.id)


@router.post("/{notification_id}/decline", response_model=NotificationActionResponse)
async def decline_notification_request(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationActionResponse:
    decline_from_notification(db, notification_id=notification_id, user=current_user)
    return NotificationActionResponse(status="declined")
