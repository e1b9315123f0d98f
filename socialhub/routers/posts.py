"""Feed API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import PostComment, User
from ..schemas import (
    PostCommentCreate,
    PostCommentListResponse,
    PostCommentResponse,
    PostFeedResponse,
    PostLikeResponse,
    PostResponse,
    UserPublicProfile,
)
from ..services import (
    FeedRecord,
    add_comment,
    create_post,
    delete_post,
    get_current_user,
    get_feed_record,
    like_post,
    list_comments,
    list_feed,
    unlike_post,
)

router = APIRouter(prefix="/posts", tags=["posts"])


def _post_response(record: FeedRecord) -> PostResponse:
    return PostResponse(
        id=record.post.id,
        author=UserPublicProfile.model_validate(record.author),
        content=record.post.content,
        image_url=record.post.image_url,
        created_at=record.post.created_at,
        like_count=record.like_count,
        comment_count=record.comment_count,
        is_liked=record.is_liked,
    )


def _comment_response(comment: PostComment) -> PostCommentResponse:
    return PostCommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        user=UserPublicProfile.model_validate(comment.user),
        content=comment.content,
        created_at=comment.created_at,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    content: str | None = Form(default=None, max_length=5000),
    image: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostResponse:
    """Create a post from ``multipart/form-data`` with text, an image, or both."""

    if image is not None and not image.filename:
        image = None
    post = await create_post(db, author=current_user, content=content, image=image)
    return _post_response(get_feed_record(db, viewer=current_user, post_id=post.id))


@router.get("/feed", response_model=PostFeedResponse)
async def feed_endpoint(
    tab: str = Query(default="for-you", pattern="^(for-you|following)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostFeedResponse:
    records = list_feed(db, viewer=current_user, tab=tab)
    return PostFeedResponse(items=[_post_response(record) for record in records])


@router.get("/{post_id}", response_model=PostResponse)
async def read_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostResponse:
    return _post_response(get_feed_record(db, viewer=current_user, post_id=post_id))


@router.post("/{post_id}/like", response_model=PostLikeResponse)
async def like_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostLikeResponse:
    count = like_post(db, post_id=post_id, user=current_user)
    return PostLikeResponse(post_id=post_id, like_count=count, is_liked=True)


@router.delete("/{post_id}/like", response_model=PostLikeResponse)
async def unlike_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostLikeResponse:
    count = unlike_post(db, post_id=post_id, user=current_user)
    return PostLikeResponse(post_id=post_id, like_count=count, is_liked=False)


@router.get("/{post_id}/comments", response_model=PostCommentListResponse)
async def list_post_comments_endpoint(
    post_id: UUID,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostCommentListResponse:
    comments = list_comments(db, post_id=post_id)
    return PostCommentListResponse(items=[_comment_response(item) for item in comments])


@router.post("/{post_id}/comments", response_model=PostCommentResponse, status_code=status.HTTP_201_CREATED)
async def create_post_comment_endpoint(
    post_id: UUID,
    payload: PostCommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostCommentResponse:
    comment = add_comment(db, post_id=post_id, user=current_user, content=payload.content)
    return _comment_response(comment)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_post(db, post_id=post_id, user=current_user)
