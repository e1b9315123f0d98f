"""In-memory WebSocket topic broker for change notifications.

Writers publish a small ``change`` event naming the table, the event kind and
the row id; subscribers refetch through the REST API.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)

POSTS_TOPIC = "public:posts"
STORIES_TOPIC = "public:stories"


def chat_topic(chat_id: UUID | str) -> str:
    return f"chat:{chat_id}"


def notifications_topic(user_id: UUID | str) -> str:
    return f"notifications:{user_id}"


def chats_topic(user_id: UUID | str) -> str:
    return f"chats:{user_id}"


def friend_requests_topic(user_id: UUID | str) -> str:
    return f"friend_requests:{user_id}"


class TopicBroker:
    """Tracks WebSocket subscriptions per topic and fans out JSON payloads."""

    def __init__(self) -> None:
        self._topics: dict[str, set[WebSocket]] = {}
        self._subscriptions: dict[WebSocket, set[str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscriptions.setdefault(websocket, set())

    async def subscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            self._topics.setdefault(topic, set()).add(websocket)
            self._subscriptions.setdefault(websocket, set()).add(topic)

    async def unsubscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            self._drop(websocket, topic)
            subscribed = self._subscriptions.get(websocket)
            if subscribed is not None:
                subscribed.discard(topic)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            topics = self._subscriptions.pop(websocket, set())
            for topic in topics:
                self._drop(websocket, topic)

    def _drop(self, websocket: WebSocket, topic: str) -> None:
        group = self._topics.get(topic)
        if group is None:
            return
        group.discard(websocket)
        if not group:
            self._topics.pop(topic, None)

    async def subscriber_count(self, topic: str) -> int:
        async with self._lock:
            return len(self._topics.get(topic, ()))

    async def publish(self, topics: str | Iterable[str], payload: dict[str, Any]) -> int:
        """Send ``payload`` to every socket subscribed to ``topics``; return deliveries."""

        names = [topics] if isinstance(topics, str) else [topic for topic in topics if topic]
        if not names:
            return 0
        serialized = json.dumps(payload, default=str)
        async with self._lock:
            targets: set[WebSocket] = set()
            for name in names:
                targets.update(self._topics.get(name, ()))
        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_text(serialized)
                delivered += 1
            except Exception:
                logger.debug("Dropping realtime socket after failed send", exc_info=True)
                await self.disconnect(websocket)
        return delivered


broker = TopicBroker()


def change_event(topic: str, *, table: str, event: str, record_id: UUID | str | None) -> dict[str, Any]:
    return {
        "type": "change",
        "topic": topic,
        "table": table,
        "event": event,
        "id": str(record_id) if record_id is not None else None,
    }


def publish_change(topic: str, *, table: str, event: str = "INSERT", record_id: UUID | str | None = None) -> None:
    """Schedule a change event on the running loop; no-op outside of one."""

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.create_task(broker.publish(topic, change_event(topic, table=table, event=event, record_id=record_id)))


__all__ = [
    "POSTS_TOPIC",
    "STORIES_TOPIC",
    "TopicBroker",
    "broker",
    "change_event",
    "chat_topic",
    "chats_topic",
    "friend_requests_topic",
    "notifications_topic",
    "publish_change",
]
