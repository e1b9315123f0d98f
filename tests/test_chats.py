"""Integration tests for chats, messages, read receipts and calls."""
from __future__ import annotations

from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError

from socialhub.database import SessionLocal
from socialhub.models import Chat, Message, Notification, UserSettings, message_reads
from socialhub.services import CANNED_SUGGESTIONS, chat_service, message_service


def test_direct_chat_is_deduplicated(authed_client, user_factory):
    alice = user_factory("dm-alice")
    bob = user_factory("dm-bob")

    first = authed_client(alice).post("/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]})
    second = authed_client(bob).post("/chats/", json={"type": "direct", "participant_ids": [str(alice.id)]})

    assert first.status_code == 201 and second.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["display_name"] == bob.full_name
    assert second.json()["display_name"] == alice.full_name
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Chat.id))) == 1


def test_chat_creation_validation(authed_client, user_factory):
    owner = user_factory("group-owner")
    member = user_factory("group-member")
    client = authed_client(owner)

    assert client.post("/chats/", json={"type": "group", "participant_ids": [str(member.id)]}).status_code == 400
    assert client.post("/chats/", json={"type": "group", "name": "Solo", "participant_ids": []}).status_code == 400
    missing = client.post(
        "/chats/",
        json={"type": "group", "name": "Ghosts", "participant_ids": ["00000000-0000-0000-0000-000000000000"]},
    )
    assert missing.status_code == 404
    assert client.post("/chats/", json={"type": "direct", "participant_ids": []}).status_code == 400

    group = client.post("/chats/", json={"type": "group", "name": "Book Club", "participant_ids": [str(member.id)]})
    assert group.status_code == 201
    assert group.json()["display_name"] == "Book Club"
    assert {item["id"] for item in group.json()["participants"]} == {str(owner.id), str(member.id)}


def test_messages_update_preview_and_read_receipts(authed_client, user_factory):
    alice = user_factory("msg-alice")
    bob = user_factory("msg-bob")
    chat_id = authed_client(alice).post(
        "/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}
    ).json()["id"]

    assert authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "   "}).status_code == 400
    sent = authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "Hello Bob"})
    assert sent.status_code == 201
    assert sent.json()["type"] == "text"
    assert sent.json()["read_by"] == [str(alice.id)]

    bob_view = authed_client(bob).get("/chats/").json()["items"]
    assert bob_view[0]["last_message"] == "Hello Bob"
    assert bob_view[0]["unread_count"] == 1

    thread = authed_client(bob).get(f"/chats/{chat_id}/messages").json()["items"]
    assert [item["content"] for item in thread] == ["Hello Bob"]
    assert set(thread[0]["read_by"]) == {str(alice.id), str(bob.id)}
    assert authed_client(bob).get("/chats/").json()["items"][0]["unread_count"] == 0
    assert authed_client(bob).post(f"/chats/{chat_id}/read").json()["updated"] == 0

    with SessionLocal() as session:
        note = session.scalar(select(Notification).where(Notification.type == "message"))
    assert note is not None and note.recipient_id == bob.id and note.related_id is not None


def test_message_notifications_respect_settings(authed_client, user_factory):
    alice = user_factory("mute-alice")
    bob = user_factory("mute-bob")
    with SessionLocal() as session:
        session.add(UserSettings(user_id=bob.id, notifications_enabled=False))
        session.commit()
    chat_id = authed_client(alice).post(
        "/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}
    ).json()["id"]

    authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "psst"})

    with SessionLocal() as session:
        assert session.scalar(select(func.count(Notification.id))) == 0


def test_non_participants_are_refused(authed_client, user_factory):
    alice = user_factory("priv-alice")
    bob = user_factory("priv-bob")
    eve = user_factory("priv-eve")
    chat_id = authed_client(alice).post(
        "/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}
    ).json()["id"]
    client = authed_client(eve)

    assert client.get(f"/chats/{chat_id}").status_code == 403
    assert client.get(f"/chats/{chat_id}/messages").status_code == 403
    assert client.post(f"/chats/{chat_id}/messages", json={"content": "hi"}).status_code == 403
    assert client.get("/chats/00000000-0000-0000-0000-000000000000").status_code == 404


def test_open_chat_with_friend_greets_once(authed_client, user_factory, make_friends):
    alice = user_factory("open-alice")
    bob = user_factory("open-bob", full_name="Bob Builder")
    stranger = user_factory("open-stranger")
    make_friends(alice, bob)
    client = authed_client(alice)

    first = client.post(f"/chats/with/{bob.id}")
    second = client.post(f"/chats/with/{bob.id}")

    assert first.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["last_message"] == "Hi Bob Builder! Let's chat."
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Message.id))) == 1
    assert client.post(f"/chats/with/{stranger.id}").status_code == 403


def test_calls_insert_system_messages(authed_client, user_factory):
    alice = user_factory("call-alice")
    bob = user_factory("call-bob")
    client = authed_client(alice)
    chat_id = client.post("/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}).json()["id"]

    video = client.post(f"/chats/{chat_id}/calls", json={"kind": "video"})
    code = client.post(f"/chats/{chat_id}/calls", json={"kind": "code"})
    ended = client.post(f"/chats/{chat_id}/calls/end")

    assert video.json()["content"] == "Started a video call"
    assert video.json()["type"] == "system"
    assert code.json()["content"] == "Started a code collaboration session"
    assert ended.json()["content"] == "Call ended"
    assert client.post(f"/chats/{chat_id}/calls", json={"kind": "fax"}).status_code == 422


def test_chat_list_search_and_ordering(authed_client, user_factory):
    me = user_factory("list-me")
    ann = user_factory("list-ann", full_name="Ann Archer")
    ben = user_factory("list-ben", full_name="Ben Baker")
    client = authed_client(me)
    ann_chat = client.post("/chats/", json={"type": "direct", "participant_ids": [str(ann.id)]}).json()["id"]
    ben_chat = client.post("/chats/", json={"type": "direct", "participant_ids": [str(ben.id)]}).json()["id"]
    client.post(f"/chats/{ann_chat}/messages", json={"content": "latest"})

    assert [item["id"] for item in client.get("/chats/").json()["items"]] == [ann_chat, ben_chat]
    filtered = client.get("/chats/", params={"search": "baker"}).json()["items"]
    assert [item["id"] for item in filtered] == [ben_chat]


def test_suggestion_endpoint_returns_canned_reply(authed_client, user_factory):
    client = authed_client(user_factory("suggest-user"))

    response = client.post("/chats/suggestions", json={"messages": ["how are you?"], "context": "friendly"})

    assert response.status_code == 200
    assert response.json()["suggestion"] in CANNED_SUGGESTIONS


def test_reading_messages_survives_a_concurrent_receipt(authed_client, user_factory, monkeypatch):
    alice = user_factory("race-alice")
    bob = user_factory("race-bob")
    chat_id = authed_client(alice).post(
        "/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}
    ).json()["id"]
    authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "first"})
    authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "second"})

    lookup = message_service._unread_message_ids
    raced: list[bool] = []

    def _lookup_then_race(db, *, chat_id, user_id):
        unread = lookup(db, chat_id=chat_id, user_id=user_id)
        if unread and not raced:
            raced.append(True)
            with SessionLocal() as other:
                other.execute(insert(message_reads), [{"message_id": unread[0], "user_id": user_id}])
                other.commit()
        return unread

    monkeypatch.setattr(message_service, "_unread_message_ids", _lookup_then_race)

    response = authed_client(bob).get(f"/chats/{chat_id}/messages")

    assert response.status_code == 200
    assert raced == [True]
    assert all(str(bob.id) in item["read_by"] for item in response.json()["items"])
    with SessionLocal() as session:
        receipts = session.scalar(select(func.count()).select_from(message_reads).where(message_reads.c.user_id == bob.id))
    assert receipts == 2


def test_listing_messages_still_works_when_marking_fails(authed_client, user_factory, monkeypatch):
    alice = user_factory("flaky-alice")
    bob = user_factory("flaky-bob")
    chat_id = authed_client(alice).post(
        "/chats/", json={"type": "direct", "participant_ids": [str(bob.id)]}
    ).json()["id"]
    authed_client(alice).post(f"/chats/{chat_id}/messages", json={"content": "are you there?"})

    def _broken(db, *, chat_id, user_id):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(message_service, "_unread_message_ids", _broken)

    response = authed_client(bob).get(f"/chats/{chat_id}/messages")

    assert response.status_code == 200
    assert [item["content"] for item in response.json()["items"]] == ["are you there?"]
    assert authed_client(bob).post(f"/chats/{chat_id}/read").status_code == 500


def test_direct_chat_insert_losing_the_race_returns_existing_chat(user_factory, monkeypatch):
    alice = user_factory("pair-alice")
    bob = user_factory("pair-bob")
    with SessionLocal() as session:
        winner, created = chat_service.get_or_create_direct_chat(session, alice, bob)
        winner_id = winner.id
    assert created is True

    lookup = chat_service.find_direct_chat
    calls: list[int] = []

    def _miss_first_lookup(db, first_id, second_id):
        calls.append(1)
        if len(calls) == 1:
            return None
        return lookup(db, first_id, second_id)

    monkeypatch.setattr(chat_service, "find_direct_chat", _miss_first_lookup)

    with SessionLocal() as session:
        chat, created = chat_service.get_or_create_direct_chat(session, bob, alice)
        assert chat.id == winner_id
        assert created is False
        assert session.scalar(select(func.count(Chat.id))) == 1
    assert len(calls) == 2
