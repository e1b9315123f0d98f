"""ORM model representing friend invitations between users.

An accepted request, in either direction, is what makes two users friends.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Column, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from socialhub.database import Base
from .base import TimestampMixin

FRIEND_REQUEST_STATUSES = ("pending", "accepted", "rejected")


class FriendRequest(TimestampMixin, Base):
    __tablename__ = "friend_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(*FRIEND_REQUEST_STATUSES, name="friend_request_status"),
        nullable=False,
        default="pending",
        server_default="pending",
    )

    sender = relationship("User", foreign_keys=[sender_id], back_populates="friend_requests_sent")
    receiver = relationship("User", foreign_keys=[receiver_id], back_populates="friend_requests_received")

    __table_args__ = (UniqueConstraint("sender_id", "receiver_id", name="uq_friend_request_pair"),)

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.receiver_id if self.sender_id == user_id else self.sender_id


__all__ = ["FriendRequest", "FRIEND_REQUEST_STATUSES"]
