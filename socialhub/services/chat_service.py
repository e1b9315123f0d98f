"""Business logic for direct and group chats."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import Chat, Message, User, direct_chat_key, message_reads
from ..models.base import utcnow
from .realtime import chat_topic, chats_topic, publish_change
from .social_graph import are_friends

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChatView:
    """A chat as seen by one participant."""

    chat: Chat
    display_name: str
    unread_count: int


def chat_display_name(chat: Chat, viewer_id: UUID) -> str:
    if chat.type == "group":
        return chat.name or "Group chat"
    for member in chat.participants:
        if member.id != viewer_id:
            return member.full_name or member.username or "Unknown User"
    return "Unknown User"


def _load_chat(db: Session, chat_id: UUID) -> Chat | None:
    stmt = select(Chat).options(selectinload(Chat.participants)).where(Chat.id == chat_id)
    return db.scalar(stmt)


def require_participant(db: Session, *, chat_id: UUID, user: User) -> Chat:
    chat = _load_chat(db, chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if not chat.has_participant(user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a participant in this chat")
    return chat


def find_direct_chat(db: Session, first: UUID, second: UUID) -> Chat | None:
    stmt = (
        select(Chat)
        .options(selectinload(Chat.participants))
        .where(Chat.direct_key == direct_chat_key(first, second))
    )
    return db.scalar(stmt)


def get_or_create_direct_chat(db: Session, first: User, second: User) -> tuple[Chat, bool]:
    """Return the direct chat between two users and whether it was just created."""

    existing = find_direct_chat(db, first.id, second.id)
    if existing is not None:
        return existing, False

    members = [db.get(User, first.id), db.get(User, second.id)]
    chat = Chat(type="direct", direct_key=direct_chat_key(first.id, second.id), participants=members)
    try:
        db.add(chat)
        db.commit()
    except IntegrityError:
        # A concurrent request created the same pair first.
        db.rollback()
        existing = find_direct_chat(db, first.id, second.id)
        if existing is None:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create chat")
        return existing, False
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create chat") from exc

    db.refresh(chat)
    for member in (first, second):
        publish_change(chats_topic(member.id), table="chats", event="INSERT", record_id=chat.id)
    return chat, True


def create_chat(
    db: Session,
    *,
    creator: User,
    type_: str,
    name: str | None,
    participant_ids: list[UUID],
) -> Chat:
    """Create a chat with ``creator`` always among the participants."""

    other_ids = [pid for pid in dict.fromkeys(participant_ids) if pid != creator.id]
    others: list[User] = []
    if other_ids:
        others = list(db.scalars(select(User).where(User.id.in_(other_ids))))
    if len(others) != len(other_ids):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more participants not found")

    if type_ == "direct":
        if len(others) != 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A direct chat needs exactly one other participant",
            )
        chat, _ = get_or_create_direct_chat(db, creator, others[0])
        return chat

    if type_ != "group":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported chat type")
    cleaned_name = (name or "").strip()
    if not cleaned_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Group name is required")
    if not others:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Add at least one other participant")

    chat = Chat(type="group", name=cleaned_name, participants=[db.get(User, creator.id), *others])
    try:
        db.add(chat)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create chat") from exc
    db.refresh(chat)
    for member in chat.participants:
        publish_change(chats_topic(member.id), table="chats", event="INSERT", record_id=chat.id)
    logger.info("Created group chat %s with %d participants", chat.id, len(chat.participants))
    return chat


def _unread_counts(db: Session, user_id: UUID, chat_ids: list[UUID]) -> dict[UUID, int]:
    if not chat_ids:
        return {}
    read_by_user = select(message_reads.c.message_id).where(message_reads.c.user_id == user_id)
    stmt = (
        select(Message.chat_id, func.count(Message.id))
        .where(
            Message.chat_id.in_(chat_ids),
            Message.sender_id != user_id,
            Message.id.not_in(read_by_user),
        )
        .group_by(Message.chat_id)
    )
    return {chat_id: int(count) for chat_id, count in db.execute(stmt)}


def build_chat_view(db: Session, chat: Chat, viewer: User) -> ChatView:
    counts = _unread_counts(db, viewer.id, [chat.id])
    return ChatView(chat=chat, display_name=chat_display_name(chat, viewer.id), unread_count=counts.get(chat.id, 0))


def list_chats(db: Session, *, user: User, search: str | None = None) -> list[ChatView]:
    """Chats the user participates in, most recently active first."""

    stmt = (
        select(Chat)
        .options(selectinload(Chat.participants))
        .where(Chat.participants.any(User.id == user.id))
        .order_by(Chat.last_message_at.desc())
    )
    chats = list(db.scalars(stmt))
    counts = _unread_counts(db, user.id, [chat.id for chat in chats])
    views = [
        ChatView(chat=chat, display_name=chat_display_name(chat, user.id), unread_count=counts.get(chat.id, 0))
        for chat in chats
    ]
    term = (search or "").strip().lower()
    if term:
        views = [view for view in views if term in view.display_name.lower()]
    return views


def append_message(
    db: Session,
    *,
    chat: Chat,
    sender_id: UUID,
    content: str,
    type_: str = "text",
    is_ai_suggestion: bool = False,
) -> Message:
    """Insert a message and bump the chat's last-message preview in one commit."""

    sender = db.get(User, sender_id)
    now = utcnow()
    message = Message(
        chat_id=chat.id,
        sender_id=sender_id,
        content=content,
        type=type_,
        is_ai_suggestion=is_ai_suggestion,
        created_at=now,
    )
    if sender is not None:
        message.read_by.append(sender)
    chat.last_message = content
    chat.last_message_at = now
    try:
        db.add(message)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message") from exc
    db.refresh(message)
    publish_change(chat_topic(chat.id), table="messages", event="INSERT", record_id=message.id)
    for member in chat.participants:
        publish_change(chats_topic(member.id), table="chats", event="UPDATE", record_id=chat.id)
    return message


def open_chat_with_friend(db: Session, *, user: User, friend_id: UUID) -> Chat:
    """Return the direct chat with a friend, greeting them when it is new."""

    friend = db.get(User, friend_id)
    if friend is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if friend.id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot open a chat with yourself")
    if not are_friends(db, user.id, friend.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only chat with friends")

    chat, created = get_or_create_direct_chat(db, user, friend)
    if created:
        append_message(db, chat=chat, sender_id=user.id, content=f"Hi {friend.display_name}! Let's chat.")
    return chat


def direct_chat_ids(db: Session, user_id: UUID, others: list[UUID]) -> dict[UUID, UUID]:
    """Map each of ``others`` to the id of its direct chat with ``user_id``."""

    if not others:
        return {}
    keys = {direct_chat_key(user_id, other): other for other in others}
    stmt = select(Chat.direct_key, Chat.id).where(and_(Chat.type == "direct", Chat.direct_key.in_(list(keys))))
    return {keys[key]: chat_id for key, chat_id in db.execute(stmt)}


__all__ = [
    "ChatView",
    "append_message",
    "build_chat_view",
    "chat_display_name",
    "create_chat",
    "direct_chat_ids",
    "find_direct_chat",
    "get_or_create_direct_chat",
    "list_chats",
    "open_chat_with_friend",
    "require_participant",
]
