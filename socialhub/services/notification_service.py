"""Notification helper logic.

Notifications are side effects of other writes, so creating one never
raises: failures are logged and the caller's primary change stands.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Iterable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import Notification, User
from .realtime import notifications_topic, publish_change

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_REQUEST_ACCEPTED = "friend_request_accepted"
    FRIEND_ACCEPTED = "friend_accepted"
    FRIEND_REMOVED = "friend_removed"
    MESSAGE = "message"
    NEW_POST = "new_post"
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    NEW_STORY = "new_story"
    STORY_VIEW = "story_view"
    STORY_REPLY = "story_reply"


def list_notifications(db: Session, user_id: UUID) -> list[Notification]:
    """Return notifications for the supplied recipient ordered newest first."""

    stmt = (
        select(Notification)
        .options(selectinload(Notification.actor))
        .where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    return list(db.scalars(stmt))


def count_unread_notifications(db: Session, user_id: UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
    )
    return int(db.scalar(stmt) or 0)


def notify_many(
    db: Session,
    *,
    recipient_ids: Iterable[UUID],
    actor_id: UUID | None,
    type_: NotificationType | str,
    content: str,
    related_id: UUID | None = None,
) -> list[Notification]:
    """Persist one notification per recipient, skipping the actor."""

    records = [
        Notification(
            recipient_id=recipient_id,
            actor_id=actor_id,
            type=str(type_),
            content=content,
            related_id=related_id,
        )
        for recipient_id in dict.fromkeys(recipient_ids)
        if recipient_id != actor_id
    ]
    if not records:
        return []

    try:
        db.add_all(records)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store %s notification(s) of type %s", len(records), type_)
        return []

    for record in records:
        publish_change(
            notifications_topic(record.recipient_id),
            table="notifications",
            event="INSERT",
            record_id=record.id,
        )
    return records


def add_notification(
    db: Session,
    *,
    recipient_id: UUID,
    actor_id: UUID | None,
    type_: NotificationType | str,
    content: str,
    related_id: UUID | None = None,
) -> Notification | None:
    records = notify_many(
        db,
        recipient_ids=[recipient_id],
        actor_id=actor_id,
        type_=type_,
        content=content,
        related_id=related_id,
    )
    return records[0] if records else None


def get_notification_for_recipient(db: Session, *, notification_id: UUID, user: User) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.recipient_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this notification")
    return notification


def mark_read(db: Session, *, notification_id: UUID, user: User) -> Notification:
    notification = get_notification_for_recipient(db, notification_id=notification_id, user=user)
    if notification.is_read:
        return notification
    notification.is_read = True
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notification") from exc
    db.refresh(notification)
    publish_change(notifications_topic(user.id), table="notifications", event="UPDATE", record_id=notification.id)
    return notification


def mark_all_read(db: Session, recipient_id: UUID) -> int:
    """Mark all notifications for the given recipient as read."""

    stmt = (
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notifications") from exc
    updated = int(result.rowcount or 0)
    if updated:
        publish_change(notifications_topic(recipient_id), table="notifications", event="UPDATE")
    return updated


__all__ = [
    "NotificationType",
    "add_notification",
    "count_unread_notifications",
    "get_notification_for_recipient",
    "list_notifications",
    "mark_all_read",
    "mark_read",
    "notify_many",
]
