"""Schemas for profile endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

SocialPlatform = Literal["instagram", "twitter", "linkedin", "github", "spotify", "website"]


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None = None
    username: str | None = None
    full_name: str = ""
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    status: str = "offline"
    last_seen: datetime | None = None
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=150)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    username: str | None = Field(default=None, min_length=3, max_length=150, pattern=r"^[A-Za-z0-9_.-]+$")


class SocialLinkRequest(BaseModel):
    value: str = Field(..., max_length=300, description="Username or URL on the platform")


class UserStatsResponse(BaseModel):
    friends: int = 0
    posts: int = 0
    stories: int = 0


__all__ = [
    "ProfileResponse",
    "ProfileUpdateRequest",
    "SocialLinkRequest",
    "SocialPlatform",
    "UserStatsResponse",
]
