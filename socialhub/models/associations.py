"""Association tables shared across ORM models."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from socialhub.database import Base
from .base import utcnow


chat_participants = Table(
    "chat_participants",
    Base.metadata,
    Column("chat_id", UUID(as_uuid=True), ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("joined_at", DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False),
)


message_reads = Table(
    "message_reads",
    Base.metadata,
    Column("message_id", UUID(as_uuid=True), ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("read_at", DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False),
)


__all__ = ["chat_participants", "message_reads"]
