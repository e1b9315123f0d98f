"""Settings API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import AccountActivityListResponse, AccountActivityResponse, SettingsResponse, SettingsUpdateRequest
from ..services import get_current_user, get_or_create_settings, list_activity, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=SettingsResponse)
async def read_settings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> SettingsResponse:
    return SettingsResponse.model_validate(get_or_create_settings(db, current_user.id))


@router.patch("/", response_model=SettingsResponse)
async def patch_settings(
    payload: SettingsUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> SettingsResponse:
    return SettingsResponse.model_validate(update_settings(db, user=current_user, payload=payload))


@router.get("/activity", response_model=AccountActivityListResponse)
async def read_activity(
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AccountActivityListResponse:
    entries = list_activity(db, current_user.id, limit=limit)
    return AccountActivityListResponse(items=[AccountActivityResponse.model_validate(entry) for entry in entries])
