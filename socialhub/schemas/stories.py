"""Pydantic schemas for ephemeral stories."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .auth import UserPublicProfile


class StoryItem(BaseModel):
    id: UUID
    image_url: str
    caption: str | None = None
    created_at: datetime
    expires_at: datetime
    viewed: bool = False


class StoryBucket(BaseModel):
    user: UserPublicProfile
    stories: list[StoryItem]
    has_unseen_story: bool = False


class StoryFeedResponse(BaseModel):
    items: list[StoryBucket]


class StoryCommentCreate(BaseModel):
    content: str = Field(..., max_length=1000)


class StoryCommentResponse(BaseModel):
    id: UUID
    story_id: UUID
    user: UserPublicProfile
    content: str
    created_at: datetime


class StoryCommentListResponse(BaseModel):
    items: list[StoryCommentResponse]


class StoryReplyResponse(BaseModel):
    comment: StoryCommentResponse
    chat_id: UUID | None = None


__all__ = [
    "StoryItem",
    "StoryBucket",
    "StoryFeedResponse",
    "StoryCommentCreate",
    "StoryCommentResponse",
    "StoryCommentListResponse",
    "StoryReplyResponse",
]
