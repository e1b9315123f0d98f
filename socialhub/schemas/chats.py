"""Schemas for chats, messages and in-chat helpers."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .auth import UserPublicProfile


class ChatCreateRequest(BaseModel):
    type: Literal["direct", "group"] = "direct"
    name: str | None = Field(default=None, max_length=120)
    participant_ids: list[UUID] = Field(default_factory=list)


class ChatResponse(BaseModel):
    id: UUID
    type: Literal["direct", "group"]
    name: str | None = None
    display_name: str
    last_message: str | None = None
    last_message_at: datetime
    created_at: datetime
    participants: list[UserPublicProfile]
    unread_count: int = 0


class ChatListResponse(BaseModel):
    items: list[ChatResponse]


class MessageSendRequest(BaseModel):
    content: str = Field(..., max_length=4000)
    is_ai_suggestion: bool = False


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chat_id: UUID
    sender_id: UUID
    content: str
    type: Literal["text", "system"]
    is_ai_suggestion: bool = False
    created_at: datetime
    read_by: list[UUID] = Field(default_factory=list)


class MessageListResponse(BaseModel):
    chat_id: UUID
    items: list[MessageResponse]


class MarkReadResponse(BaseModel):
    chat_id: UUID
    updated: int


class CallStartRequest(BaseModel):
    kind: Literal["audio", "video", "code"] = "video"


class SuggestionRequest(BaseModel):
    messages: list[str] = Field(default_factory=list)
    context: str | None = None


class SuggestionResponse(BaseModel):
    suggestion: str


__all__ = [
    "ChatCreateRequest",
    "ChatResponse",
    "ChatListResponse",
    "MessageSendRequest",
    "MessageResponse",
    "MessageListResponse",
    "MarkReadResponse",
    "CallStartRequest",
    "SuggestionRequest",
    "SuggestionResponse",
]
