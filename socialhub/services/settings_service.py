"""User preferences and account activity logging."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import AccountActivity, User, UserSettings
from ..schemas import SettingsUpdateRequest

logger = logging.getLogger(__name__)


def get_or_create_settings(db: Session, user_id: UUID) -> UserSettings:
    """Return the settings row for ``user_id``, inserting defaults on first read."""

    record = db.scalar(select(UserSettings).where(UserSettings.user_id == user_id))
    if record is not None:
        return record

    record = UserSettings(user_id=user_id)
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        existing = db.scalar(select(UserSettings).where(UserSettings.user_id == user_id))
        if existing is not None:
            return existing
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load settings") from exc
    db.refresh(record)
    return record


def update_settings(db: Session, *, user: User, payload: SettingsUpdateRequest) -> UserSettings:
    record = get_or_create_settings(db, user.id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return record

    for field, value in changes.items():
        setattr(record, field, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update settings") from exc
    db.refresh(record)
    record_activity(db, user_id=user.id, action="settings_updated")
    return record


def notifications_enabled(db: Session, user_id: UUID) -> bool:
    """Return the stored preference without creating a settings row."""

    value = db.scalar(select(UserSettings.notifications_enabled).where(UserSettings.user_id == user_id))
    return True if value is None else bool(value)


def record_activity(db: Session, *, user_id: UUID, action: str, ip_address: str | None = None) -> AccountActivity | None:
    """Append an entry to the account activity log; failures are logged only."""

    entry = AccountActivity(user_id=user_id, action=action, ip_address=ip_address)
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record account activity %s for %s", action, user_id)
        return None
    return entry


def list_activity(db: Session, user_id: UUID, *, limit: int = 50) -> list[AccountActivity]:
    stmt = (
        select(AccountActivity)
        .where(AccountActivity.user_id == user_id)
        .order_by(AccountActivity.created_at.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


__all__ = [
    "get_or_create_settings",
    "update_settings",
    "notifications_enabled",
    "record_activity",
    "list_activity",
]
