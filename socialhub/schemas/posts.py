"""Pydantic models for the feed."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .auth import UserPublicProfile


class PostResponse(BaseModel):
    id: UUID
    author: UserPublicProfile
    content: str
    image_url: str | None = None
    created_at: datetime
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False


class PostFeedResponse(BaseModel):
    items: list[PostResponse]


class PostLikeResponse(BaseModel):
    post_id: UUID
    like_count: int
    is_liked: bool


class PostCommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)


class PostCommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    user: UserPublicProfile
    content: str
    created_at: datetime


class PostCommentListResponse(BaseModel):
    items: list[PostCommentResponse]


__all__ = [
    "PostResponse",
    "PostFeedResponse",
    "PostLikeResponse",
    "PostCommentCreate",
    "PostCommentResponse",
    "PostCommentListResponse",
]
