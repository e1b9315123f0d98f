"""Profile API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import ProfileResponse, ProfileUpdateRequest, SocialLinkRequest, SocialPlatform, UserStatsResponse
from ..services import (
    connect_social_link,
    disconnect_social_link,
    get_current_user,
    get_profile,
    update_profile,
    upload_avatar,
    user_stats,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def read_my_profile(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(current_user)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    user = update_profile(db, user=current_user, payload=payload)
    return ProfileResponse.model_validate(user)


@router.post("/me/avatar", response_model=ProfileResponse)
async def upload_my_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    user = await upload_avatar(db, user=current_user, file=file)
    return ProfileResponse.model_validate(user)


@router.put("/me/social-links/{platform}", response_model=ProfileResponse)
async def connect_my_social_link(
    platform: SocialPlatform,
    payload: SocialLinkRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    user = connect_social_link(db, user=current_user, platform=platform, value=payload.value)
    return ProfileResponse.model_validate(user)


@router.delete("/me/social-links/{platform}", response_model=ProfileResponse)
async def disconnect_my_social_link(
    platform: SocialPlatform,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    return ProfileResponse.model_validate(disconnect_social_link(db, user=current_user, platform=platform))


@router.get("/{user_id}", response_model=ProfileResponse)
async def read_profile(
    user_id: UUID,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    return ProfileResponse.model_validate(get_profile(db, user_id))


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def read_profile_stats(
    user_id: UUID,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UserStatsResponse:
    stats = user_stats(db, user_id)
    return UserStatsResponse(friends=stats.friends, posts=stats.posts, stories=stats.stories)
