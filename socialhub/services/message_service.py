"""Business logic for chat messages, read receipts and call markers."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import Message, User, message_reads
from .chat_service import append_message, require_participant
from .notification_service import NotificationType, notify_many
from .realtime import chat_topic, publish_change
from .settings_service import notifications_enabled

logger = logging.getLogger(__name__)

CALL_STARTED_MESSAGES = {
    "video": "Started a video call",
    "audio": "Started an audio call",
    "code": "Started a code collaboration session",
}
CALL_ENDED_MESSAGE = "Call ended"

_PREVIEW_LENGTH = 100


def _unread_message_ids(db: Session, *, chat_id: UUID, user_id: UUID) -> list[UUID]:
    already_read = select(message_reads.c.message_id).where(message_reads.c.user_id == user_id)
    stmt = select(Message.id).where(
        Message.chat_id == chat_id,
        Message.sender_id != user_id,
        Message.id.not_in(already_read),
    )
    return list(db.scalars(stmt))


def _record_reads(db: Session, *, chat_id: UUID, user_id: UUID, attempts: int = 3) -> int:
    """Insert missing receipts; rows another request inserted first are skipped."""

    for _ in range(attempts):
        unread_ids = _unread_message_ids(db, chat_id=chat_id, user_id=user_id)
        if not unread_ids:
            return 0
        try:
            db.execute(insert(message_reads), [{"message_id": mid, "user_id": user_id} for mid in unread_ids])
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Read receipts for chat %s raced another reader; retrying", chat_id)
            continue
        publish_change(chat_topic(chat_id), table="message_reads", event="INSERT")
        return len(unread_ids)
    return 0


def mark_messages_read(db: Session, *, chat_id: UUID, user: User) -> int:
    """Add ``user`` to the read-by set of every message other members sent."""

    require_participant(db, chat_id=chat_id, user=user)
    try:
        return _record_reads(db, chat_id=chat_id, user_id=user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to mark messages read") from exc


def list_messages(db: Session, *, chat_id: UUID, user: User) -> list[Message]:
    """Messages oldest first; reading them marks them read for ``user`` when possible."""

    require_participant(db, chat_id=chat_id, user=user)
    try:
        _record_reads(db, chat_id=chat_id, user_id=user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to mark messages read in chat %s", chat_id)
    db.expire_all()
    stmt = (
        select(Message)
        .options(selectinload(Message.read_by))
        .where(Message.chat_id == chat_id)
        .order_by(Message.created_at.asc())
    )
    return list(db.scalars(stmt))


def send_message(
    db: Session,
    *,
    chat_id: UUID,
    sender: User,
    content: str,
    is_ai_suggestion: bool = False,
) -> Message:
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message cannot be empty")

    chat = require_participant(db, chat_id=chat_id, user=sender)
    message = append_message(db, chat=chat, sender_id=sender.id, content=text, is_ai_suggestion=is_ai_suggestion)

    recipients = [
        member.id
        for member in chat.participants
        if member.id != sender.id and notifications_enabled(db, member.id)
    ]
    preview = text if len(text) <= _PREVIEW_LENGTH else text[: _PREVIEW_LENGTH - 1] + "…"
    notify_many(
        db,
        recipient_ids=recipients,
        actor_id=sender.id,
        type_=NotificationType.MESSAGE,
        content=preview,
        related_id=chat.id,
    )
    return message


def start_call(db: Session, *, chat_id: UUID, user: User, kind: str) -> Message:
    content = CALL_STARTED_MESSAGES.get(kind)
    if content is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported call type")
    chat = require_participant(db, chat_id=chat_id, user=user)
    return append_message(db, chat=chat, sender_id=user.id, content=content, type_="system")


def end_call(db: Session, *, chat_id: UUID, user: User) -> Message:
    chat = require_participant(db, chat_id=chat_id, user=user)
    return append_message(db, chat=chat, sender_id=user.id, content=CALL_ENDED_MESSAGE, type_="system")


__all__ = [
    "CALL_ENDED_MESSAGE",
    "CALL_STARTED_MESSAGES",
    "end_call",
    "list_messages",
    "mark_messages_read",
    "send_message",
    "start_call",
]
