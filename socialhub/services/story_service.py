"""Business logic for ephemeral stories, their views, comments and replies."""
from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..models import Story, StoryComment, StoryView, User
from ..models.base import utcnow
from .chat_service import append_message, get_or_create_direct_chat
from .notification_service import NotificationType, add_notification, notify_many
from .realtime import STORIES_TOPIC, publish_change
from .social_graph import are_friends, friend_ids
from .storage_service import (
    STORIES_BUCKET,
    StorageConfigurationError,
    StorageUploadError,
    StorageUploadResult,
    storage_error_to_http,
    upload_bytes_to_storage,
    upload_file_to_storage,
)

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(?P<content_type>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)


@dataclass(slots=True)
class StoryGroup:
    """Active stories of one author as seen by a viewer."""

    author: User
    stories: list[tuple[Story, bool]] = field(default_factory=list)

    @property
    def has_unseen_story(self) -> bool:
        return any(not viewed for _, viewed in self.stories)


def parse_data_url(value: str) -> tuple[str, bytes]:
    """Split a ``data:<type>;base64,<payload>`` URL into content type and bytes."""

    match = _DATA_URL_PATTERN.match((value or "").strip())
    if match is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image must be a base64 data URL")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image data is not valid base64") from exc
    return match.group("content_type").lower(), data


def _persist_story(db: Session, *, author: User, image_url: str, caption: str | None) -> Story:
    now = utcnow()
    story = Story(
        user_id=author.id,
        image_url=image_url,
        caption=(caption or "").strip() or None,
        created_at=now,
        expires_at=now + timedelta(hours=get_settings().story_ttl_hours),
    )
    try:
        db.add(story)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create story for %s", author.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create story") from exc
    db.refresh(story)

    publish_change(STORIES_TOPIC, table="stories", event="INSERT", record_id=story.id)
    notify_many(
        db,
        recipient_ids=friend_ids(db, author.id),
        actor_id=author.id,
        type_=NotificationType.NEW_STORY,
        content=f"{author.display_name} added a new story",
        related_id=story.id,
    )
    return story


async def create_story(db: Session, *, author: User, image: UploadFile, caption: str | None = None) -> Story:
    try:
        result = await upload_file_to_storage(
            image,
            bucket=STORIES_BUCKET,
            folder=str(author.id),
            max_bytes=get_settings().max_upload_bytes,
        )
    except (StorageConfigurationError, StorageUploadError) as exc:
        raise storage_error_to_http(exc) from exc
    return _persist_story(db, author=author, image_url=result.url, caption=caption)


async def create_story_from_data_url(db: Session, *, author: User, data_url: str, caption: str | None = None) -> Story:
    content_type, data = parse_data_url(data_url)
    try:
        result: StorageUploadResult = await upload_bytes_to_storage(
            data,
            content_type=content_type,
            bucket=STORIES_BUCKET,
            folder=str(author.id),
            max_bytes=get_settings().max_upload_bytes,
        )
    except (StorageConfigurationError, StorageUploadError) as exc:
        raise storage_error_to_http(exc) from exc
    return _persist_story(db, author=author, image_url=result.url, caption=caption)


def list_stories(db: Session, *, viewer: User) -> list[StoryGroup]:
    """Active stories of the viewer and their friends, grouped per author.

    The viewer's own group comes first, then groups with unseen stories, then
    the rest; within each set the most recent activity wins.
    """

    authors = friend_ids(db, viewer.id) | {viewer.id}
    stmt = (
        select(Story)
        .options(selectinload(Story.author))
        .where(Story.user_id.in_(list(authors)), Story.expires_at > utcnow())
        .order_by(Story.created_at.asc())
    )
    stories = list(db.scalars(stmt))
    if not stories:
        return []

    viewed_ids = set(
        db.scalars(
            select(StoryView.story_id).where(
                StoryView.viewer_id == viewer.id,
                StoryView.story_id.in_([story.id for story in stories]),
            )
        )
    )

    groups: dict[UUID, StoryGroup] = {}
    for story in stories:
        group = groups.setdefault(story.user_id, StoryGroup(author=story.author))
        viewed = story.user_id == viewer.id or story.id in viewed_ids
        group.stories.append((story, viewed))

    def _sort_key(group: StoryGroup) -> tuple[int, int, float]:
        latest = group.stories[-1][0].created_at
        return (
            0 if group.author.id == viewer.id else 1,
            0 if group.has_unseen_story else 1,
            -latest.timestamp(),
        )

    return sorted(groups.values(), key=_sort_key)


def _visible_story(db: Session, *, story_id: UUID, viewer: User) -> Story:
    story = db.get(Story, story_id)
    if story is None or not story.is_active():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    if story.user_id != viewer.id and not are_friends(db, viewer.id, story.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Stories are only visible to friends")
    return story


def view_story(db: Session, *, story_id: UUID, viewer: User) -> bool:
    """Record a first view by someone other than the author; return whether recorded."""

    story = _visible_story(db, story_id=story_id, viewer=viewer)
    if story.user_id == viewer.id:
        return False
    existing = db.scalar(select(StoryView.id).where(StoryView.story_id == story.id, StoryView.viewer_id == viewer.id))
    if existing is not None:
        return False

    try:
        db.add(StoryView(story_id=story.id, viewer_id=viewer.id))
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record story view") from exc

    add_notification(
        db,
        recipient_id=story.user_id,
        actor_id=viewer.id,
        type_=NotificationType.STORY_VIEW,
        content="viewed your story",
        related_id=story.id,
    )
    return True


def list_story_comments(db: Session, *, story_id: UUID, viewer: User) -> list[StoryComment]:
    _visible_story(db, story_id=story_id, viewer=viewer)
    stmt = (
        select(StoryComment)
        .options(selectinload(StoryComment.user))
        .where(StoryComment.story_id == story_id)
        .order_by(StoryComment.created_at.desc())
    )
    return list(db.scalars(stmt))


def reply_to_story(db: Session, *, story_id: UUID, user: User, content: str) -> tuple[StoryComment, UUID | None]:
    """Comment on a story; replies to someone else's story also go to their chat."""

    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reply cannot be empty")
    story = _visible_story(db, story_id=story_id, viewer=user)

    chat_id = None
    if story.user_id != user.id:
        author = db.get(User, story.user_id)
        chat, _ = get_or_create_direct_chat(db, user, author)
        append_message(db, chat=chat, sender_id=user.id, content=f"Reply to story: {text}")
        chat_id = chat.id
        add_notification(
            db,
            recipient_id=story.user_id,
            actor_id=user.id,
            type_=NotificationType.STORY_REPLY,
            content="replied to your story",
            related_id=story.id,
        )

    comment = StoryComment(story_id=story.id, user_id=user.id, content=text, created_at=utcnow())
    try:
        db.add(comment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save story reply") from exc
    db.refresh(comment)
    publish_change(STORIES_TOPIC, table="story_comments", event="INSERT", record_id=story.id)
    return comment, chat_id


__all__ = [
    "StoryGroup",
    "create_story",
    "create_story_from_data_url",
    "list_stories",
    "list_story_comments",
    "parse_data_url",
    "reply_to_story",
    "view_story",
]
