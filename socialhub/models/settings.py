"""Per-user preferences and the account activity log."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from socialhub.database import Base
from .base import TimestampMixin, utcnow


class UserSettings(TimestampMixin, Base):
    __tablename__ = "user_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    notifications_enabled = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    sleep_tracking_enabled = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    nutrition_tracking_enabled = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    theme = Column(String(16), nullable=False, default="light", server_default="light")
    language = Column(String(16), nullable=False, default="en", server_default="en")

    user = relationship("User", back_populates="settings")


class AccountActivity(Base):
    __tablename__ = "account_activity"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(120), nullable=False)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    user = relationship("User", back_populates="activity")


__all__ = ["UserSettings", "AccountActivity"]
