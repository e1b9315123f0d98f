"""Elevated request handlers mirroring the hosted backend's edge functions.

Errors are returned as ``{"error": ...}`` bodies rather than FastAPI's
``{"detail": ...}`` so existing clients can read them unchanged.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas.functions import (
    CreateChatFunctionPayload,
    FunctionRequest,
    SuggestFunctionPayload,
    UploadStoryFunctionPayload,
)
from ..services import create_chat, create_story_from_data_url, get_current_user, suggest_reply
from .stories import story_item

router = APIRouter(prefix="/functions", tags=["functions"])
logger = logging.getLogger(__name__)


def _error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _upload_story(db: Session, user: User, data: dict[str, Any]) -> JSONResponse:
    try:
        payload = UploadStoryFunctionPayload.model_validate(data)
    except ValidationError:
        return _error("Missing required fields: imageData, userId")
    if payload.user_id != user.id:
        return _error("Cannot upload a story for another user", status.HTTP_403_FORBIDDEN)

    story = await create_story_from_data_url(db, author=user, data_url=payload.image, caption=payload.caption)
    return JSONResponse(
        content={
            "success": True,
            "story": story_item(story, viewed=True).model_dump(mode="json"),
            "imageUrl": story.image_url,
        }
    )


def _create_chat(db: Session, user: User, data: dict[str, Any]) -> JSONResponse:
    try:
        payload = CreateChatFunctionPayload.model_validate(data)
    except ValidationError:
        return _error("Missing required fields: type, participants")
    if user.id not in payload.participants:
        return _error("You must be a participant of the chat", status.HTTP_403_FORBIDDEN)

    chat = create_chat(db, creator=user, type_=payload.type, name=payload.name, participant_ids=payload.participants)
    return JSONResponse(content={"id": str(chat.id)})


@router.post("/chat-ai")
async def chat_ai(
    request: FunctionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> JSONResponse:
    """Dispatch on ``action``: ``suggest``, ``uploadStory`` or ``create-chat``."""

    try:
        if request.action == "suggest":
            payload = SuggestFunctionPayload.model_validate(request.data)
            return JSONResponse(content={"suggestion": suggest_reply(payload.messages, payload.context)})
        if request.action == "uploadStory":
            return await _upload_story(db, current_user, request.data)
        if request.action == "create-chat":
            return _create_chat(db, current_user, request.data)
    except ValidationError:
        return _error("Invalid request data")
    except HTTPException as exc:
        return _error(str(exc.detail), exc.status_code)

    logger.info("Rejected unknown chat-ai action %r", request.action)
    return _error("Invalid action")


@router.post("/chat-ai/create-chat")
async def chat_ai_create_chat(
    body: dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> JSONResponse:
    """Create a chat, adding the caller to ``participants`` when absent."""

    try:
        payload = CreateChatFunctionPayload.model_validate(body)
    except ValidationError:
        return _error("Missing required fields: type, participants")

    participants = list(payload.participants)
    if current_user.id not in participants:
        participants.append(current_user.id)
    try:
        chat = create_chat(db, creator=current_user, type_=payload.type, name=payload.name, participant_ids=participants)
    except HTTPException as exc:
        return _error(str(exc.detail), exc.status_code)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"id": str(chat.id), "status": "success", "message": "Chat created successfully"},
    )


__all__ = ["router"]
