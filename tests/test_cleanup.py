"""Tests for the expired story cleanup task."""
from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func, select

from socialhub.database import SessionLocal
from socialhub.models import Story, StoryComment, StoryView
from socialhub.models.base import utcnow
from socialhub.services.cleanup_service import CleanupSummary, perform_cleanup, run_cleanup


def _story(session, user, *, age_hours: int) -> Story:
    created = utcnow() - timedelta(hours=age_hours)
    story = Story(user_id=user.id, image_url="https://cdn.example.test/s.png", created_at=created, expires_at=created + timedelta(hours=24))
    session.add(story)
    session.flush()
    return story


def test_perform_cleanup_removes_expired_stories_and_children(user_factory):
    author = user_factory("cleanup-author")
    viewer = user_factory("cleanup-viewer")
    with SessionLocal() as session:
        expired = _story(session, author, age_hours=30)
        active = _story(session, author, age_hours=2)
        session.add_all(
            [
                StoryView(story_id=expired.id, viewer_id=viewer.id),
                StoryView(story_id=active.id, viewer_id=viewer.id),
                StoryComment(story_id=expired.id, user_id=viewer.id, content="old"),
            ]
        )
        session.commit()
        active_id = active.id

    with SessionLocal() as session:
        summary = perform_cleanup(session)

    assert summary == CleanupSummary(stories=1, story_views=1, story_comments=1)
    assert summary.total == 3
    with SessionLocal() as session:
        assert list(session.scalars(select(Story.id))) == [active_id]
        assert session.scalar(select(func.count(StoryView.id))) == 1
        assert session.scalar(select(func.count(StoryComment.id))) == 0


def test_run_cleanup_with_nothing_expired(user_factory):
    author = user_factory("cleanup-idle")
    with SessionLocal() as session:
        _story(session, author, age_hours=1)
        session.commit()

    summary = run_cleanup(SessionLocal)

    assert summary.total == 0


def test_perform_cleanup_honours_explicit_now(user_factory):
    author = user_factory("cleanup-future")
    with SessionLocal() as session:
        _story(session, author, age_hours=1)
        session.commit()

    with SessionLocal() as session:
        summary = perform_cleanup(session, now=utcnow() + timedelta(days=2))

    assert summary.stories == 1
