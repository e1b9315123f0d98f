"""SQLAlchemy ORM models for conversations and their messages."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from socialhub.database import Base
from .associations import chat_participants, message_reads
from .base import TimestampMixin, utcnow

CHAT_TYPES = ("direct", "group")
MESSAGE_TYPES = ("text", "system")


def direct_chat_key(first: uuid.UUID, second: uuid.UUID) -> str:
    """Return the order-independent key identifying the direct chat of a pair."""

    low, high = sorted((str(first), str(second)))
    return f"{low}:{high}"


class Chat(TimestampMixin, Base):
    __tablename__ = "chats"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(Enum(*CHAT_TYPES, name="chat_type"), nullable=False, default="direct")
    name = Column(String(120), nullable=True)
    # Only set for direct chats; the unique index stops duplicate threads for one pair.
    direct_key = Column(String(80), nullable=True, unique=True)
    last_message = Column(Text, nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), index=True)

    participants = relationship("User", secondary=chat_participants, back_populates="chats")
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    def has_participant(self, user_id: uuid.UUID) -> bool:
        return any(member.id == user_id for member in self.participants)


class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    chat_id = Column(UUID(as_uuid=True), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(Enum(*MESSAGE_TYPES, name="message_type"), nullable=False, default="text", server_default="text")
    is_ai_suggestion = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False, index=True)

    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User", back_populates="sent_messages")
    read_by = relationship("User", secondary=message_reads)


__all__ = ["Chat", "Message", "CHAT_TYPES", "MESSAGE_TYPES", "direct_chat_key"]
