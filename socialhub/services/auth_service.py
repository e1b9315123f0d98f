"""Authentication backed by a managed, GoTrue-compatible auth provider.

Passwords and token issuance stay with the provider. This module only calls
its REST endpoints, verifies the JWTs it signs and keeps the ``users``
profile table in step with the provider's accounts.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..models import User
from ..schemas import SignInRequest, SignUpRequest
from ..security.secrets import MissingSecretError, require_secret
from .settings_service import record_activity

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)

USERNAME_NOT_FOUND = "Username not found. Please check and try again."


class AuthProviderError(RuntimeError):
    """Raised when the auth provider is unreachable or rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


@lru_cache(maxsize=1)
def get_auth_client() -> httpx.Client:
    """Return a shared HTTP client bound to the auth provider."""

    settings = get_settings()
    headers = {"Content-Type": "application/json"}
    if settings.auth_anon_key:
        headers["apikey"] = settings.auth_anon_key
    return httpx.Client(base_url=settings.auth_url.rstrip("/"), headers=headers, timeout=settings.auth_timeout)


def _provider_request(
    method: str,
    path: str,
    *,
    json: dict[str, Any],
    params: dict[str, str] | None = None,
    access_token: str | None = None,
) -> dict[str, Any]:
    headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
    try:
        response = get_auth_client().request(method, path, json=json, params=params, headers=headers)
    except httpx.HTTPError as exc:
        logger.exception("Auth provider request %s %s failed", method, path)
        raise AuthProviderError("Authentication service is unavailable") from exc

    try:
        body = response.json()
    except ValueError:
        body = {}
    if response.is_error:
        message = None
        if isinstance(body, dict):
            message = body.get("error_description") or body.get("msg") or body.get("message") or body.get("error")
        raise AuthProviderError(str(message or "Authentication request was rejected"), status_code=response.status_code)
    return body if isinstance(body, dict) else {}


def _provider_http_error(exc: AuthProviderError, *, fallback_status: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    if exc.status_code is None or exc.status_code >= 500:
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=fallback_status, detail=str(exc))


def decode_access_token(token: str) -> UUID:
    """Verify a provider-issued JWT and return its subject."""

    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from exc


def _username_taken(db: Session, username: str, *, exclude: UUID | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.username) == username.lower())
    if exclude is not None:
        stmt = stmt.where(User.id != exclude)
    return db.scalar(stmt) is not None


def _upsert_profile(
    db: Session,
    *,
    user_id: UUID,
    email: str | None,
    full_name: str | None = None,
    username: str | None = None,
) -> User:
    user = db.get(User, user_id)
    if user is None:
        user = User(id=user_id, email=email, full_name=full_name or "", username=username)
        db.add(user)
    else:
        if email:
            user.email = email
        if full_name:
            user.full_name = full_name
        if username:
            user.username = username
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to upsert profile for %s", user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save profile") from exc
    db.refresh(user)
    return user


def _session_user_id(body: dict[str, Any]) -> UUID:
    user_payload = body.get("user") if isinstance(body.get("user"), dict) else body
    try:
        return UUID(str(user_payload.get("id")))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Auth provider returned no user") from exc


def _mark_presence(db: Session, user: User, online: bool) -> None:
    user.status = "online" if online else "offline"
    user.last_seen = datetime.now(timezone.utc)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update presence for %s", user.id)


def sign_up(db: Session, payload: SignUpRequest) -> tuple[User, dict[str, Any]]:
    """Register with the provider and create the matching profile row."""

    username = payload.username.strip() if payload.username else None
    if username and _username_taken(db, username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    metadata = {"full_name": payload.full_name.strip()}
    if username:
        metadata["username"] = username
    try:
        body = _provider_request(
            "POST",
            "/signup",
            json={"email": payload.email, "password": payload.password, "data": metadata},
        )
    except AuthProviderError as exc:
        raise _provider_http_error(exc) from exc

    user = _upsert_profile(
        db,
        user_id=_session_user_id(body),
        email=str(payload.email),
        full_name=payload.full_name.strip(),
        username=username,
    )
    logger.info("Registered user %s", user.id)
    return user, body


def _resolve_email(db: Session, identifier: str) -> str:
    candidate = identifier.strip()
    if "@" in candidate:
        return candidate
    email = db.scalar(select(User.email).where(func.lower(User.username) == candidate.lower()))
    if not email:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USERNAME_NOT_FOUND)
    return email


def sign_in(db: Session, payload: SignInRequest, *, ip_address: str | None = None) -> tuple[User, dict[str, Any]]:
    """Exchange credentials for a provider session; identifier may be a username."""

    email = _resolve_email(db, payload.identifier)
    try:
        body = _provider_request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": payload.password},
        )
    except AuthProviderError as exc:
        raise _provider_http_error(exc, fallback_status=status.HTTP_401_UNAUTHORIZED) from exc

    user_id = _session_user_id(body)
    user = db.get(User, user_id)
    if user is None:
        metadata = (body.get("user") or {}).get("user_metadata") or {}
        user = _upsert_profile(
            db,
            user_id=user_id,
            email=email,
            full_name=metadata.get("full_name"),
            username=metadata.get("username"),
        )
    _mark_presence(db, user, True)
    record_activity(db, user_id=user.id, action="login", ip_address=ip_address)
    return user, body


def update_password(db: Session, *, user: User, access_token: str, new_password: str) -> None:
    try:
        _provider_request("PUT", "/user", json={"password": new_password}, access_token=access_token)
    except AuthProviderError as exc:
        raise _provider_http_error(exc) from exc
    record_activity(db, user_id=user.id, action="password_changed")


def sign_out(db: Session, *, user: User) -> None:
    record = db.get(User, user.id)
    if record is not None:
        _mark_presence(db, record, False)
    record_activity(db, user_id=user.id, action="logout")


def get_bearer_token(credentials: HTTPAuthorizationCredentials | None = Depends(_security)) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return credentials.credentials


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated user from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User profile not found")
    _mark_presence(db, user, True)
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User | None:
    """Return the authenticated user when a bearer token is provided."""

    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    try:
        user_id = decode_access_token(credentials.credentials)
    except HTTPException:
        return None
    return db.get(User, user_id)


__all__ = [
    "AuthProviderError",
    "USERNAME_NOT_FOUND",
    "decode_access_token",
    "get_auth_client",
    "get_bearer_token",
    "get_current_user",
    "get_optional_user",
    "sign_in",
    "sign_out",
    "sign_up",
    "update_password",
]
