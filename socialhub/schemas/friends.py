"""Schemas for friend search, requests and suggestions."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .auth import UserPublicProfile


class FriendSearchResult(UserPublicProfile):
    email: str | None = None
    pending: bool = False


class FriendSearchResponse(BaseModel):
    results: list[FriendSearchResult]


class FriendRequestPayload(BaseModel):
    receiver_id: UUID


class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    status: Literal["pending", "accepted", "rejected"]
    created_at: datetime
    sender: UserPublicProfile | None = None


class FriendRequestListResponse(BaseModel):
    items: list[FriendRequestResponse]


class FriendActionResponse(BaseModel):
    status: str
    chat_id: UUID | None = None


class FriendSummary(UserPublicProfile):
    chat_id: UUID | None = None


class FriendListResponse(BaseModel):
    friends: list[FriendSummary]


class FriendSuggestion(BaseModel):
    user: UserPublicProfile
    mutual_friends: int = 0


class FriendSuggestionListResponse(BaseModel):
    items: list[FriendSuggestion]


__all__ = [
    "FriendSearchResult",
    "FriendSearchResponse",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendRequestListResponse",
    "FriendActionResponse",
    "FriendSummary",
    "FriendListResponse",
    "FriendSuggestion",
    "FriendSuggestionListResponse",
]
