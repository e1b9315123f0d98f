"""Friendship queries derived from accepted friend requests."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from ..models import FriendRequest


def between(first: UUID, second: UUID) -> ColumnElement[bool]:
    """Filter matching friend requests between two users in either direction."""

    return or_(
        and_(FriendRequest.sender_id == first, FriendRequest.receiver_id == second),
        and_(FriendRequest.sender_id == second, FriendRequest.receiver_id == first),
    )


def friend_ids(db: Session, user_id: UUID) -> set[UUID]:
    stmt = select(FriendRequest.sender_id, FriendRequest.receiver_id).where(
        FriendRequest.status == "accepted",
        or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id),
    )
    result: set[UUID] = set()
    for sender_id, receiver_id in db.execute(stmt):
        result.add(receiver_id if sender_id == user_id else sender_id)
    return result


def are_friends(db: Session, first: UUID, second: UUID) -> bool:
    stmt = select(FriendRequest.id).where(FriendRequest.status == "accepted", between(first, second)).limit(1)
    return db.scalar(stmt) is not None


def pending_partner_ids(db: Session, user_id: UUID) -> set[UUID]:
    """Users with a pending request to or from ``user_id``."""

    stmt = select(FriendRequest.sender_id, FriendRequest.receiver_id).where(
        FriendRequest.status == "pending",
        or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id),
    )
    return {receiver_id if sender_id == user_id else sender_id for sender_id, receiver_id in db.execute(stmt)}


__all__ = ["between", "friend_ids", "are_friends", "pending_partner_ids"]
