"""Pydantic schemas for the auth workflow."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserPublicProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    full_name: str = ""
    avatar_url: str | None = None
    status: str = "offline"
    last_seen: datetime | None = None


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=150)
    username: str | None = Field(default=None, min_length=3, max_length=150, pattern=r"^[A-Za-z0-9_.-]+$")


class SignInRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email address or username")
    password: str = Field(..., min_length=1)


class PasswordUpdateRequest(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=128)


class SessionResponse(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    user: UserPublicProfile


__all__ = [
    "UserPublicProfile",
    "SignUpRequest",
    "SignInRequest",
    "PasswordUpdateRequest",
    "SessionResponse",
]
