"""WebSocket endpoint for topic subscriptions."""
from __future__ import annotations

import json
import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database import create_session
from ..models import chat_participants
from ..services import decode_access_token
from ..services.realtime import POSTS_TOPIC, STORIES_TOPIC, broker

router = APIRouter(prefix="/realtime", tags=["realtime"])
logger = logging.getLogger(__name__)

_PUBLIC_TOPICS = {POSTS_TOPIC, STORIES_TOPIC}
_OWNER_PREFIXES = ("notifications:", "friend_requests:", "chats:")


def can_subscribe(db: Session, topic: str, user_id: UUID) -> bool:
    """Return whether ``user_id`` may receive events published on ``topic``."""

    if topic in _PUBLIC_TOPICS:
        return True
    for prefix in _OWNER_PREFIXES:
        if topic.startswith(prefix):
            return topic[len(prefix):] == str(user_id)
    if topic.startswith("chat:"):
        try:
            chat_id = UUID(topic[len("chat:"):])
        except ValueError:
            return False
        stmt = select(chat_participants.c.chat_id).where(
            chat_participants.c.chat_id == chat_id,
            chat_participants.c.user_id == user_id,
        )
        return db.execute(stmt).first() is not None
    return False


def _authorize(topic: str, user_id: UUID) -> bool:
    with create_session() as db:
        return can_subscribe(db, topic, user_id)


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: str = Query(..., alias="token")) -> None:
    """Accept subscribe/unsubscribe/ping messages and stream change events."""

    try:
        user_id = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await broker.connect(websocket)
    await websocket.send_text(json.dumps({"type": "ready"}))
    logger.info("Realtime socket connected for %s", user_id)
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                payload = {"action": raw.strip()}
            if not isinstance(payload, dict):
                payload = {}

            action = str(payload.get("action") or "").lower()
            topic = str(payload.get("topic") or "")
            if action == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
            elif action == "subscribe" and topic:
                if _authorize(topic, user_id):
                    await broker.subscribe(websocket, topic)
                    await websocket.send_text(json.dumps({"type": "subscribed", "topic": topic}))
                else:
                    await websocket.send_text(
                        json.dumps({"type": "error", "topic": topic, "detail": "Not allowed to subscribe"})
                    )
            elif action == "unsubscribe" and topic:
                await broker.unsubscribe(websocket, topic)
                await websocket.send_text(json.dumps({"type": "unsubscribed", "topic": topic}))
            else:
                await websocket.send_text(json.dumps({"type": "error", "detail": "Unknown action"}))
    finally:
        await broker.disconnect(websocket)
        logger.info("Realtime socket disconnected for %s", user_id)


__all__ = ["router", "can_subscribe"]
