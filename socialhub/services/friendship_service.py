"""Business logic for friend requests, friendships and suggestions."""
from __future__ import annotations

import logging
from collections import Counter
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import Chat, FriendRequest, User
from .chat_service import direct_chat_ids, get_or_create_direct_chat
from .notification_service import NotificationType, add_notification, get_notification_for_recipient
from .realtime import friend_requests_topic, publish_change
from .social_graph import are_friends, between, friend_ids, pending_partner_ids

logger = logging.getLogger(__name__)

SEARCH_MODES = ("email", "username")


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


def _publish_request_change(request: FriendRequest, event: str) -> None:
    for user_id in (request.sender_id, request.receiver_id):
        publish_change(friend_requests_topic(user_id), table="friend_requests", event=event, record_id=request.id)


def search_users(db: Session, *, user: User, query: str, mode: str = "email") -> list[tuple[User, bool]]:
    """Find users to befriend; each hit carries whether the caller already asked."""

    term = (query or "").strip()
    if not term:
        return []
    if mode not in SEARCH_MODES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search mode must be email or username")

    column = User.email if mode == "email" else User.username
    excluded = friend_ids(db, user.id) | {user.id}
    stmt = (
        select(User)
        .where(func.lower(column).contains(term.lower()), User.id.not_in(list(excluded)))
        .order_by(User.full_name.asc())
        .limit(20)
    )
    matches = list(db.scalars(stmt))
    if not matches:
        return []

    pending_stmt = select(FriendRequest.receiver_id).where(
        FriendRequest.sender_id == user.id,
        FriendRequest.status == "pending",
        FriendRequest.receiver_id.in_([match.id for match in matches]),
    )
    pending = set(db.scalars(pending_stmt))
    return [(match, match.id in pending) for match in matches]


def send_friend_request(db: Session, *, sender: User, receiver_id: UUID) -> tuple[str, FriendRequest]:
    """Send a request, or accept the receiver's pending one.

    Returns ``("accepted", request)`` when an incoming request was accepted
    instead, otherwise ``("pending", request)``.
    """

    if receiver_id == sender.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot add yourself as a friend")
    receiver = db.get(User, receiver_id)
    if receiver is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if are_friends(db, sender.id, receiver_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You are already friends")

    incoming = db.scalar(
        select(FriendRequest).where(
            FriendRequest.sender_id == receiver_id,
            FriendRequest.receiver_id == sender.id,
            FriendRequest.status == "pending",
        )
    )
    if incoming is not None:
        _accept(db, incoming, acceptor=sender, notification_type=NotificationType.FRIEND_REQUEST_ACCEPTED)
        return "accepted", incoming

    outgoing = db.scalar(
        select(FriendRequest).where(FriendRequest.sender_id == sender.id, FriendRequest.receiver_id == receiver_id)
    )
    if outgoing is not None and outgoing.status == "pending":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Friend request already sent")

    if outgoing is None:
        outgoing = FriendRequest(sender_id=sender.id, receiver_id=receiver_id, status="pending")
        db.add(outgoing)
    else:
        outgoing.status = "pending"
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Friend request already sent") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send friend request") from exc
    db.refresh(outgoing)

    _publish_request_change(outgoing, "INSERT")
    add_notification(
        db,
        recipient_id=receiver_id,
        actor_id=sender.id,
        type_=NotificationType.FRIEND_REQUEST,
        content="sent you a friend request",
        related_id=sender.id,
    )
    return "pending", outgoing


def list_friend_requests(db: Session, *, user: User) -> list[FriendRequest]:
    """Incoming pending requests, newest first."""

    stmt = (
        select(FriendRequest)
        .options(selectinload(FriendRequest.sender))
        .where(FriendRequest.receiver_id == user.id, FriendRequest.status == "pending")
        .order_by(FriendRequest.created_at.desc())
    )
    return list(db.scalars(stmt))


def _pending_for_receiver(db: Session, *, request_id: UUID, user: User) -> FriendRequest:
    request = db.get(FriendRequest, request_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")
    if request.receiver_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the recipient can respond to this request")
    if request.status != "pending":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Friend request already processed")
    return request


def _accept(
    db: Session,
    request: FriendRequest,
    *,
    acceptor: User,
    notification_type: NotificationType = NotificationType.FRIEND_ACCEPTED,
) -> Chat:
    request.status = "accepted"
    _commit(db, "Failed to accept friend request")
    db.refresh(request)
    _publish_request_change(request, "UPDATE")

    sender = db.get(User, request.sender_id)
    chat, _ = get_or_create_direct_chat(db, acceptor, sender)
    add_notification(
        db,
        recipient_id=request.sender_id,
        actor_id=acceptor.id,
        type_=notification_type,
        content="accepted your friend request",
        related_id=acceptor.id,
    )
    logger.info("Friend request %s accepted", request.id)
    return chat


def accept_friend_request(db: Session, *, request_id: UUID, user: User) -> Chat:
    request = _pending_for_receiver(db, request_id=request_id, user=user)
    return _accept(db, request, acceptor=user)


def reject_friend_request(db: Session, *, request_id: UUID, user: User) -> FriendRequest:
    request = _pending_for_receiver(db, request_id=request_id, user=user)
    request.status = "rejected"
    _commit(db, "Failed to reject friend request")
    db.refresh(request)
    _publish_request_change(request, "UPDATE")
    return request


def list_friends(db: Session, *, user: User, query: str | None = None) -> list[tuple[User, UUID | None]]:
    """Friends ordered by name, each with the id of the direct chat if one exists."""

    ids = friend_ids(db, user.id)
    if not ids:
        return []
    stmt = select(User).where(User.id.in_(list(ids))).order_by(User.full_name.asc())
    term = (query or "").strip().lower()
    if term:
        stmt = stmt.where(
            or_(func.lower(User.full_name).contains(term), func.lower(User.username).contains(term))
        )
    friends = list(db.scalars(stmt))
    chats = direct_chat_ids(db, user.id, [friend.id for friend in friends])
    return [(friend, chats.get(friend.id)) for friend in friends]


def remove_friend(db: Session, *, user: User, friend_id: UUID) -> None:
    if not are_friends(db, user.id, friend_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friendship not found")

    db.execute(delete(FriendRequest).where(FriendRequest.status == "accepted", between(user.id, friend_id)))
    _commit(db, "Failed to remove friend")
    for user_id in (user.id, friend_id):
        publish_change(friend_requests_topic(user_id), table="friend_requests", event="DELETE")
    add_notification(
        db,
        recipient_id=friend_id,
        actor_id=user.id,
        type_=NotificationType.FRIEND_REMOVED,
        content="removed you from their friends list",
        related_id=user.id,
    )


def friend_suggestions(db: Session, *, user: User, limit: int = 5) -> list[tuple[User, int]]:
    """Friends-of-friends ranked by mutual friends; anyone else when friendless."""

    direct = friend_ids(db, user.id)
    excluded = direct | pending_partner_ids(db, user.id) | {user.id}

    if not direct:
        stmt = select(User).where(User.id.not_in(list(excluded))).order_by(User.created_at.desc()).limit(limit)
        return [(candidate, 0) for candidate in db.scalars(stmt)]

    mutuals: Counter[UUID] = Counter()
    for friend_id in direct:
        for candidate_id in friend_ids(db, friend_id):
            if candidate_id not in excluded:
                mutuals[candidate_id] += 1
    if not mutuals:
        return []

    ranked = mutuals.most_common(limit)
    users = {candidate.id: candidate for candidate in db.scalars(select(User).where(User.id.in_([uid for uid, _ in ranked])))}
    return [(users[uid], count) for uid, count in ranked if uid in users]


def _pending_from_actor(db: Session, *, notification_id: UUID, user: User):
    notification = get_notification_for_recipient(db, notification_id=notification_id, user=user)
    if notification.type != NotificationType.FRIEND_REQUEST:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This notification is not a friend request")
    request = None
    if notification.actor_id is not None:
        request = db.scalar(
            select(FriendRequest).where(
                FriendRequest.sender_id == notification.actor_id,
                FriendRequest.receiver_id == user.id,
                FriendRequest.status == "pending",
            )
        )
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")
    return notification, request


def accept_from_notification(db: Session, *, notification_id: UUID, user: User) -> Chat:
    notification, request = _pending_from_actor(db, notification_id=notification_id, user=user)
    chat = _accept(db, request, acceptor=user)
    notification.is_read = True
    _commit(db, "Failed to update notification")
    return chat


def decline_from_notification(db: Session, *, notification_id: UUID, user: User) -> None:
    notification, request = _pending_from_actor(db, notification_id=notification_id, user=user)
    sender_id = request.sender_id
    db.delete(request)
    notification.is_read = True
    _commit(db, "Failed to decline friend request")
    for user_id in (sender_id, user.id):
        publish_change(friend_requests_topic(user_id), table="friend_requests", event="DELETE")


__all__ = [
    "SEARCH_MODES",
    "accept_friend_request",
    "accept_from_notification",
    "decline_from_notification",
    "friend_suggestions",
    "list_friend_requests",
    "list_friends",
    "reject_friend_request",
    "remove_friend",
    "search_users",
    "send_friend_request",
]
