"""Authentication API routes."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    PasswordUpdateRequest,
    ProfileResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserPublicProfile,
)
from ..services import get_bearer_token, get_current_user, sign_in, sign_out, sign_up, update_password

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(user: User, body: dict[str, Any]) -> SessionResponse:
    return SessionResponse(
        access_token=body.get("access_token"),
        refresh_token=body.get("refresh_token"),
        token_type=body.get("token_type") or "bearer",
        expires_in=body.get("expires_in"),
        user=UserPublicProfile.model_validate(user),
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignUpRequest, db: Session = Depends(get_session)) -> SessionResponse:
    user, body = sign_up(db, payload)
    return _session_response(user, body)


@router.post("/signin", response_model=SessionResponse)
async def signin(payload: SignInRequest, request: Request, db: Session = Depends(get_session)) -> SessionResponse:
    ip_address = request.client.host if request.client else None
    user, body = sign_in(db, payload, ip_address=ip_address)
    return _session_response(user, body)


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: PasswordUpdateRequest,
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    update_password(db, user=current_user, access_token=token, new_password=payload.new_password)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    sign_out(db, user=current_user)


@router.get("/me", response_model=ProfileResponse)
async def read_current_user(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(current_user)
