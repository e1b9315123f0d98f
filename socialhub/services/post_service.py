"""Business logic for the feed, likes and comments."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..models import Post, PostComment, PostLike, User
from ..models.base import utcnow
from .notification_service import NotificationType, add_notification, notify_many
from .realtime import POSTS_TOPIC, publish_change
from .social_graph import friend_ids
from .storage_service import (
    POSTS_BUCKET,
    StorageConfigurationError,
    StorageUploadError,
    storage_error_to_http,
    upload_file_to_storage,
)

logger = logging.getLogger(__name__)

EMPTY_POST_MESSAGE = "Please add some content to your post"
FEED_TABS = ("for-you", "following")


@dataclass(frozen=True, slots=True)
class FeedRecord:
    post: Post
    author: User
    like_count: int
    comment_count: int
    is_liked: bool


def _get_post(db: Session, post_id: UUID) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


async def create_post(db: Session, *, author: User, content: str | None, image: UploadFile | None = None) -> Post:
    """Create a post; at least one of text or image is required."""

    text = (content or "").strip()
    if not text and image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EMPTY_POST_MESSAGE)

    image_url = None
    if image is not None:
        try:
            result = await upload_file_to_storage(
                image,
                bucket=POSTS_BUCKET,
                folder=str(author.id),
                max_bytes=get_settings().max_upload_bytes,
            )
        except (StorageConfigurationError, StorageUploadError) as exc:
            raise storage_error_to_http(exc) from exc
        image_url = result.url

    post = Post(author_id=author.id, content=text, image_url=image_url, created_at=utcnow())
    try:
        db.add(post)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create post for %s", author.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create post") from exc
    db.refresh(post)

    publish_change(POSTS_TOPIC, table="posts", event="INSERT", record_id=post.id)
    notify_many(
        db,
        recipient_ids=friend_ids(db, author.id),
        actor_id=author.id,
        type_=NotificationType.NEW_POST,
        content=f"{author.display_name} shared a new post",
        related_id=post.id,
    )
    return post


def list_feed(db: Session, *, viewer: User, tab: str = "for-you", post_id: UUID | None = None) -> list[FeedRecord]:
    """Posts newest first with engagement counts for ``viewer``."""

    if tab not in FEED_TABS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown feed tab")

    like_count = select(func.count(PostLike.id)).where(PostLike.post_id == Post.id).scalar_subquery()
    comment_count = select(func.count(PostComment.id)).where(PostComment.post_id == Post.id).scalar_subquery()
    viewer_like = (
        select(func.count(PostLike.id))
        .where(PostLike.post_id == Post.id, PostLike.user_id == viewer.id)
        .scalar_subquery()
    )
    stmt = (
        select(Post, User, like_count, comment_count, viewer_like)
        .join(User, Post.author_id == User.id)
        .order_by(Post.created_at.desc())
    )
    if tab == "following":
        friends = friend_ids(db, viewer.id)
        if not friends:
            return []
        stmt = stmt.where(Post.author_id.in_(list(friends)))
    if post_id is not None:
        stmt = stmt.where(Post.id == post_id)

    return [
        FeedRecord(
            post=post,
            author=author,
            like_count=int(likes or 0),
            comment_count=int(comments or 0),
            is_liked=bool(liked),
        )
        for post, author, likes, comments, liked in db.execute(stmt)
    ]


def get_feed_record(db: Session, *, viewer: User, post_id: UUID) -> FeedRecord:
    records = list_feed(db, viewer=viewer, post_id=post_id)
    if not records:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return records[0]


def _like_count(db: Session, post_id: UUID) -> int:
    return int(db.scalar(select(func.count(PostLike.id)).where(PostLike.post_id == post_id)) or 0)


def like_post(db: Session, *, post_id: UUID, user: User) -> int:
    """Like a post; liking twice is a no-op. Returns the new like count."""

    post = _get_post(db, post_id)
    existing = db.scalar(select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user.id))
    if existing is not None:
        return _like_count(db, post_id)

    try:
        db.add(PostLike(post_id=post_id, user_id=user.id))
        db.commit()
    except IntegrityError:
        db.rollback()
        return _like_count(db, post_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to like post") from exc

    publish_change(POSTS_TOPIC, table="post_likes", event="INSERT", record_id=post_id)
    if post.author_id != user.id:
        add_notification(
            db,
            recipient_id=post.author_id,
            actor_id=user.id,
            type_=NotificationType.POST_LIKE,
            content="liked your post",
            related_id=post.id,
        )
    return _like_count(db, post_id)


def unlike_post(db: Session, *, post_id: UUID, user: User) -> int:
    _get_post(db, post_id)
    existing = db.scalar(select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user.id))
    if existing is None:
        return _like_count(db, post_id)
    try:
        db.delete(existing)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to unlike post") from exc
    publish_change(POSTS_TOPIC, table="post_likes", event="DELETE", record_id=post_id)
    return _like_count(db, post_id)


def list_comments(db: Session, *, post_id: UUID) -> list[PostComment]:
    _get_post(db, post_id)
    stmt = (
        select(PostComment)
        .options(selectinload(PostComment.user))
        .where(PostComment.post_id == post_id)
        .order_by(PostComment.created_at.asc())
    )
    return list(db.scalars(stmt))


def add_comment(db: Session, *, post_id: UUID, user: User, content: str) -> PostComment:
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment cannot be empty")
    post = _get_post(db, post_id)

    comment = PostComment(post_id=post_id, user_id=user.id, content=text, created_at=utcnow())
    try:
        db.add(comment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add comment") from exc
    db.refresh(comment)

    publish_change(POSTS_TOPIC, table="post_comments", event="INSERT", record_id=post_id)
    if post.author_id != user.id:
        add_notification(
            db,
            recipient_id=post.author_id,
            actor_id=user.id,
            type_=NotificationType.POST_COMMENT,
            content=text,
            related_id=post.id,
        )
    return comment


def delete_post(db: Session, *, post_id: UUID, user: User) -> None:
    post = _get_post(db, post_id)
    if post.author_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own posts")
    try:
        db.delete(post)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete post") from exc
    publish_change(POSTS_TOPIC, table="posts", event="DELETE", record_id=post_id)


__all__ = [
    "EMPTY_POST_MESSAGE",
    "FEED_TABS",
    "FeedRecord",
    "add_comment",
    "create_post",
    "delete_post",
    "get_feed_record",
    "like_post",
    "list_comments",
    "list_feed",
    "unlike_post",
]
