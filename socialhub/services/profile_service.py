"""Profile reads, edits, avatars and counters."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..models import Post, Story, User
from ..models.base import utcnow
from ..schemas import ProfileUpdateRequest
from .settings_service import record_activity
from .social_graph import friend_ids
from .storage_service import (
    AVATARS_BUCKET,
    StorageConfigurationError,
    StorageUploadError,
    storage_error_to_http,
    upload_file_to_storage,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserStats:
    friends: int
    posts: int
    stories: int


def get_profile(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _commit_profile(db: Session, user: User) -> User:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update profile") from exc
    db.refresh(user)
    return user


def update_profile(db: Session, *, user: User, payload: ProfileUpdateRequest) -> User:
    user = get_profile(db, user.id)
    changes = payload.model_dump(exclude_unset=True)
    username = changes.get("username")
    if username:
        taken = db.scalar(
            select(User.id).where(func.lower(User.username) == username.lower(), User.id != user.id)
        )
        if taken is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    for field_name, value in changes.items():
        if field_name == "full_name" and not value:
            continue
        setattr(user, field_name, value.strip() if isinstance(value, str) else value)
    user.updated_at = utcnow()
    updated = _commit_profile(db, user)
    record_activity(db, user_id=user.id, action="profile_updated")
    return updated


async def upload_avatar(db: Session, *, user: User, file: UploadFile) -> User:
    try:
        result = await upload_file_to_storage(
            file,
            bucket=AVATARS_BUCKET,
            folder=str(user.id),
            max_bytes=get_settings().max_avatar_bytes,
        )
    except (StorageConfigurationError, StorageUploadError) as exc:
        raise storage_error_to_http(exc) from exc
    user = get_profile(db, user.id)
    user.avatar_url = result.url
    updated = _commit_profile(db, user)
    record_activity(db, user_id=user.id, action="avatar_updated")
    return updated


def connect_social_link(db: Session, *, user: User, platform: str, value: str) -> User:
    """Store ``value`` as the caller's handle on ``platform``, keeping other platforms."""

    cleaned = (value or "").strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please enter your {platform} username or URL",
        )
    user = get_profile(db, user.id)
    # Reassign so the JSON column is flagged dirty.
    user.social_links = {**(user.social_links or {}), platform: cleaned}
    user.updated_at = utcnow()
    updated = _commit_profile(db, user)
    record_activity(db, user_id=user.id, action=f"social_connected:{platform}")
    return updated


def disconnect_social_link(db: Session, *, user: User, platform: str) -> User:
    user = get_profile(db, user.id)
    links = dict(user.social_links or {})
    if links.pop(platform, None) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No {platform} account connected")
    user.social_links = links
    user.updated_at = utcnow()
    return _commit_profile(db, user)


def user_stats(db: Session, user_id: UUID) -> UserStats:
    get_profile(db, user_id)
    posts = db.scalar(select(func.count(Post.id)).where(Post.author_id == user_id)) or 0
    stories = db.scalar(
        select(func.count(Story.id)).where(Story.user_id == user_id, Story.expires_at > utcnow())
    ) or 0
    return UserStats(friends=len(friend_ids(db, user_id)), posts=int(posts), stories=int(stories))


__all__ = [
    "UserStats",
    "connect_social_link",
    "disconnect_social_link",
    "get_profile",
    "update_profile",
    "upload_avatar",
    "user_stats",
]
