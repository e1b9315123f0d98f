"""Utility helpers shared across ORM models."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Reusable timestamp columns with timezone-aware defaults."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


__all__ = ["TimestampMixin", "utcnow"]
