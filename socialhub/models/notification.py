"""SQLAlchemy ORM model for notifications."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from socialhub.database import Base
from .base import utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    # Points at a user, post, story or chat depending on ``type``.
    related_id = Column(UUID(as_uuid=True), nullable=True)
    is_read = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    recipient = relationship(
        "User",
        foreign_keys=[recipient_id],
        back_populates="notifications_received",
    )
    actor = relationship("User", foreign_keys=[actor_id])


__all__ = ["Notification"]
