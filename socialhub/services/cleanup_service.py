"""Automated cleanup utilities for pruning expired stories."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Story, StoryComment, StoryView
from ..models.base import utcnow

logger = logging.getLogger(__name__)


class CleanupError(RuntimeError):
    """Raised when the cleanup task cannot complete successfully."""


@dataclass(frozen=True, slots=True)
class CleanupSummary:
    """Represents the number of records deleted during a cleanup run."""

    stories: int
    story_views: int
    story_comments: int

    @property
    def total(self) -> int:
        return self.stories + self.story_views + self.story_comments


def perform_cleanup(session: Session, *, now: datetime | None = None) -> CleanupSummary:
    """Delete stories whose ``expires_at`` has passed, with their views and comments.

    Child rows are removed explicitly so backends that do not enforce
    ``ON DELETE CASCADE`` end up in the same state.

    Raises
    ------
    CleanupError
        If the cleanup process fails; the transaction is rolled back.
    """

    cutoff = now or utcnow()
    expired = select(Story.id).where(Story.expires_at <= cutoff)

    try:
        views = session.execute(
            delete(StoryView).where(StoryView.story_id.in_(expired)).execution_options(synchronize_session=False)
        )
        comments = session.execute(
            delete(StoryComment).where(StoryComment.story_id.in_(expired)).execution_options(synchronize_session=False)
        )
        stories = session.execute(
            delete(Story).where(Story.expires_at <= cutoff).execution_options(synchronize_session=False)
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Cleanup failed; transaction rolled back")
        raise CleanupError("Failed to prune expired stories") from exc

    return CleanupSummary(
        stories=int(stories.rowcount or 0),
        story_views=int(views.rowcount or 0),
        story_comments=int(comments.rowcount or 0),
    )


def run_cleanup(session_factory: Callable[[], Session]) -> CleanupSummary:
    """Open a session via ``session_factory`` and run :func:`perform_cleanup`."""

    session = session_factory()
    try:
        return perform_cleanup(session)
    finally:
        session.close()


__all__ = ["CleanupError", "CleanupSummary", "perform_cleanup", "run_cleanup"]
