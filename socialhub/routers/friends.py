"""Friend management API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import FriendRequest, User
from ..schemas import (
    FriendActionResponse,
    FriendListResponse,
    FriendRequestListResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendSearchResponse,
    FriendSearchResult,
    FriendSuggestion,
    FriendSuggestionListResponse,
    FriendSummary,
    UserPublicProfile,
)
from ..services import (
    accept_friend_request,
    friend_suggestions,
    get_current_user,
    list_friend_requests,
    list_friends,
    reject_friend_request,
    remove_friend,
    search_users,
    send_friend_request,
)

router = APIRouter(prefix="/friends", tags=["friends"])


def _request_response(request: FriendRequest) -> FriendRequestResponse:
    return FriendRequestResponse(
        id=request.id,
        sender_id=request.sender_id,
        receiver_id=request.receiver_id,
        status=request.status,
        created_at=request.created_at,
        sender=UserPublicProfile.model_validate(request.sender) if request.sender is not None else None,
    )


@router.get("/", response_model=FriendListResponse)
async def list_my_friends(
    q: str | None = Query(default=None, max_length=150),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendListResponse:
    friends = list_friends(db, user=current_user, query=q)
    return FriendListResponse(
        friends=[
            FriendSummary(**UserPublicProfile.model_validate(friend).model_dump(), chat_id=chat_id)
            for friend, chat_id in friends
        ]
    )


@router.get("/search", response_model=FriendSearchResponse)
async def search_friends(
    q: str = Query(..., min_length=1, max_length=150),
    mode: str = Query(default="email", pattern="^(email|username)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendSearchResponse:
    matches = search_users(db, user=current_user, query=q, mode=mode)
    return FriendSearchResponse(
        results=[
            FriendSearchResult(**UserPublicProfile.model_validate(match).model_dump(), email=match.email, pending=pending)
            for match, pending in matches
        ]
    )


@router.get("/suggestions", response_model=FriendSuggestionListResponse)
async def suggest_friends(
    limit: int = Query(default=5, ge=1, le=20),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendSuggestionListResponse:
    suggestions = friend_suggestions(db, user=current_user, limit=limit)
    return FriendSuggestionListResponse(
        items=[
            FriendSuggestion(user=UserPublicProfile.model_validate(candidate), mutual_friends=mutual)
            for candidate, mutual in suggestions
        ]
    )


@router.get("/requests", response_model=FriendRequestListResponse)
async def list_incoming_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestListResponse:
    requests = list_friend_requests(db, user=current_user)
    return FriendRequestListResponse(items=[_request_response(item) for item in requests])


@router.post("/requests", response_model=FriendActionResponse, status_code=status.HTTP_201_CREATED)
async def create_friend_request(
    payload: FriendRequestPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendActionResponse:
    outcome, _ = send_friend_request(db, sender=current_user, receiver_id=payload.receiver_id)
    return FriendActionResponse(status=outcome)


@router.post("/requests/{request_id}/accept", response_model=FriendActionResponse)
async def accept_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendActionResponse:
    chat = accept_friend_request(db, request_id=request_id, user=current_user)
    return FriendActionResponse(status="accepted", chat_id=chat.id)


@router.post("/requests/{request_id}/reject", response_model=FriendActionResponse)
async def reject_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendActionResponse:
    request = reject_friend_request(db, request_id=request_id, user=current_user)
    return FriendActionResponse(status=request.status)


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unfriend(
    friend_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    remove_friend(db, user=current_user, friend_id=friend_id)
