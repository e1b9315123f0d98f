"""Tests for the edge-function style endpoints."""
from __future__ import annotations

import base64
from uuid import UUID

import pytest
from sqlalchemy import select

from socialhub.database import SessionLocal
from socialhub.models import Chat, Story
from socialhub.schemas.functions import SuggestFunctionPayload, UploadStoryFunctionPayload
from socialhub.services import story_service
from socialhub.services.storage_service import StorageUploadResult
from socialhub.services.suggestion_service import CANNED_SUGGESTIONS


@pytest.fixture
def fake_bytes_upload(monkeypatch):
    uploads: list[dict[str, object]] = []

    async def _fake_upload(data, *, content_type, bucket, folder, max_bytes):
        uploads.append({"data": data, "content_type": content_type, "bucket": bucket, "folder": folder})
        return StorageUploadResult(
            url=f"https://cdn.example.test/{bucket}/{folder}/story.png",
            key=f"{folder}/story.png",
            bucket=bucket,
            content_type=content_type,
            size=len(data),
        )

    monkeypatch.setattr(story_service, "upload_bytes_to_storage", _fake_upload)
    return uploads


def test_suggest_returns_a_canned_reply(authed_client, user_factory):
    client = authed_client(user_factory("suggester"))

    response = client.post("/functions/chat-ai", json={"action": "suggest", "data": {"messages": [{"content": "hey"}]}})

    assert response.status_code == 200
    assert response.json()["suggestion"] in CANNED_SUGGESTIONS


def test_unknown_action_is_rejected(authed_client, user_factory):
    client = authed_client(user_factory("confused"))

    response = client.post("/functions/chat-ai", json={"action": "summarize"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


def test_create_chat_action_requires_caller_membership(authed_client, user_factory):
    caller = user_factory("fn-caller")
    other = user_factory("fn-other")
    third = user_factory("fn-third")
    client = authed_client(caller)

    outsider = client.post(
        "/functions/chat-ai",
        json={"action": "create-chat", "data": {"type": "direct", "participants": [str(other.id), str(third.id)]}},
    )
    assert outsider.status_code == 403
    assert "error" in outsider.json()

    created = client.post(
        "/functions/chat-ai",
        json={
            "action": "create-chat",
            "data": {"type": "group", "name": "Trio", "participants": [str(caller.id), str(other.id), str(third.id)]},
        },
    )
    assert created.status_code == 200
    with SessionLocal() as session:
        chat = session.get(Chat, UUID(created.json()["id"]))
        assert chat.name == "Trio"
        assert {participant.id for participant in chat.participants} == {caller.id, other.id, third.id}


def test_create_chat_endpoint_adds_the_caller(authed_client, user_factory):
    caller = user_factory("direct-caller")
    other = user_factory("direct-other")
    client = authed_client(caller)

    missing = client.post("/functions/chat-ai/create-chat", json={"type": "direct"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing required fields: type, participants"}

    response = client.post("/functions/chat-ai/create-chat", json={"type": "direct", "participants": [str(other.id)]})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "Chat created successfully"
    with SessionLocal() as session:
        chat = session.get(Chat, UUID(body["id"]))
        assert chat.type == "direct"
        assert {participant.id for participant in chat.participants} == {caller.id, other.id}


def test_upload_story_action_stores_decoded_image(authed_client, user_factory, fake_bytes_upload):
    author = user_factory("fn-story")
    client = authed_client(author)
    image = "data:image/png;base64," + base64.b64encode(b"\x89PNGdata").decode()

    response = client.post(
        "/functions/chat-ai",
        json={"action": "uploadStory", "data": {"imageData": image, "caption": "from mobile", "userId": str(author.id)}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["imageUrl"] == f"https://cdn.example.test/stories/{author.id}/story.png"
    assert fake_bytes_upload[0]["data"] == b"\x89PNGdata"
    assert fake_bytes_upload[0]["content_type"] == "image/png"
    with SessionLocal() as session:
        story = session.scalar(select(Story))
    assert story.caption == "from mobile"


def test_upload_story_action_rejects_other_user(authed_client, user_factory, fake_bytes_upload):
    author = user_factory("fn-impostor")
    victim = user_factory("fn-victim")
    client = authed_client(author)
    image = "data:image/png;base64," + base64.b64encode(b"img").decode()

    response = client.post(
        "/functions/chat-ai",
        json={"action": "uploadStory", "data": {"imageData": image, "userId": str(victim.id)}},
    )

    assert response.status_code == 403
    assert fake_bytes_upload == []


def test_upload_story_action_rejects_bad_data_url(authed_client, user_factory, fake_bytes_upload):
    author = user_factory("fn-badimage")
    client = authed_client(author)

    response = client.post(
        "/functions/chat-ai",
        json={"action": "uploadStory", "data": {"imageData": "not-a-data-url", "userId": str(author.id)}},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Image must be a base64 data URL"}


def test_function_payloads_read_client_field_names():
    suggest = SuggestFunctionPayload.model_validate({"messages": [], "chatContext": "planning a trip"})
    upload = UploadStoryFunctionPayload.model_validate(
        {"imageData": "data:image/png;base64,aW1n", "userId": "00000000-0000-0000-0000-000000000001"}
    )

    assert suggest.context == "planning a trip"
    assert upload.image == "data:image/png;base64,aW1n"


def test_upload_story_action_requires_image_data(authed_client, user_factory, fake_bytes_upload):
    author = user_factory("fn-noimage")
    client = authed_client(author)

    response = client.post(
        "/functions/chat-ai",
        json={"action": "uploadStory", "data": {"caption": "nothing attached", "userId": str(author.id)}},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: imageData, userId"}
    assert fake_bytes_upload == []
