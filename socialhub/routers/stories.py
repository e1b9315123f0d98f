"""Story API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Story, StoryComment, User
from ..schemas import (
    StoryBucket,
    StoryCommentCreate,
    StoryCommentListResponse,
    StoryCommentResponse,
    StoryFeedResponse,
    StoryItem,
    StoryReplyResponse,
    UserPublicProfile,
)
from ..services import (
    create_story,
    get_current_user,
    list_stories,
    list_story_comments,
    reply_to_story,
    view_story,
)

router = APIRouter(prefix="/stories", tags=["stories"])


def story_item(story: Story, *, viewed: bool = False) -> StoryItem:
    return StoryItem(
        id=story.id,
        image_url=story.image_url,
        caption=story.caption,
        created_at=story.created_at,
        expires_at=story.expires_at,
        viewed=viewed,
    )


def _comment_response(comment: StoryComment) -> StoryCommentResponse:
    return StoryCommentResponse(
        id=comment.id,
        story_id=comment.story_id,
        user=UserPublicProfile.model_validate(comment.user),
        content=comment.content,
        created_at=comment.created_at,
    )


@router.post("/", response_model=StoryItem, status_code=status.HTTP_201_CREATED)
async def create_story_endpoint(
    image: UploadFile = File(...),
    caption: str | None = Form(default=None, max_length=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryItem:
    story = await create_story(db, author=current_user, image=image, caption=caption)
    return story_item(story, viewed=True)


@router.get("/", response_model=StoryFeedResponse)
async def list_stories_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryFeedResponse:
    groups = list_stories(db, viewer=current_user)
    return StoryFeedResponse(
        items=[
            StoryBucket(
                user=UserPublicProfile.model_validate(group.author),
                stories=[story_item(story, viewed=viewed) for story, viewed in group.stories],
                has_unseen_story=group.has_unseen_story,
            )
            for group in groups
        ]
    )


@router.post("/{story_id}/view")
async def view_story_endpoint(
    story_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> dict[str, bool]:
    return {"recorded": view_story(db, story_id=story_id, viewer=current_user)}


@router.get("/{story_id}/comments", response_model=StoryCommentListResponse)
async def list_story_comments_endpoint(
    story_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryCommentListResponse:
    comments = list_story_comments(db, story_id=story_id, viewer=current_user)
    return StoryCommentListResponse(items=[_comment_response(item) for item in comments])


@router.post("/{story_id}/replies", response_model=StoryReplyResponse, status_code=status.HTTP_201_CREATED)
async def reply_to_story_endpoint(
    story_id: UUID,
    payload: StoryCommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StoryReplyResponse:
    comment, chat_id = reply_to_story(db, story_id=story_id, user=current_user, content=payload.content)
    return StoryReplyResponse(comment=_comment_response(comment), chat_id=chat_id)
