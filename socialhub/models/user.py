"""SQLAlchemy ORM model for user profiles.

The primary key mirrors the subject issued by the managed auth provider.
"""
from __future__ import annotations

import uuid

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from socialhub.database import Base
from .associations import chat_participants
from .base import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=True, index=True)
    username = Column(String(150), unique=True, nullable=True, index=True)
    full_name = Column(String(150), nullable=False, default="", server_default="")
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(String(500), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    social_links = Column(JSON, nullable=False, default=dict)
    status = Column(String(16), nullable=False, default="offline", server_default="offline")
    last_seen = Column(DateTime(timezone=True), nullable=True)

    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    stories = relationship("Story", back_populates="author", cascade="all, delete-orphan")
    chats = relationship("Chat", secondary=chat_participants, back_populates="participants")
    sent_messages = relationship("Message", back_populates="sender", cascade="all, delete-orphan")
    friend_requests_sent = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.sender_id",
        back_populates="sender",
        cascade="all, delete-orphan",
    )
    friend_requests_received = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.receiver_id",
        back_populates="receiver",
        cascade="all, delete-orphan",
    )
    notifications_received = relationship(
        "Notification",
        foreign_keys="Notification.recipient_id",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )
    settings = relationship("UserSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")
    activity = relationship("AccountActivity", back_populates="user", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.email or "Unknown User"


__all__ = ["User"]
