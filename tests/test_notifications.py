"""Integration tests for notifications and friend-request actions on them."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from socialhub.database import SessionLocal
from socialhub.models import Chat, FriendRequest, Notification, Post


def _request_notification_id(client) -> str:
    items = client.get("/notifications/").json()["items"]
    return next(item["id"] for item in items if item["type"] == "friend_request")


def test_list_resolves_actor_and_counts_unread(authed_client, user_factory):
    alice = user_factory("note-alice", full_name="Alice Note")
    bob = user_factory("note-bob")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    client = authed_client(bob)

    items = client.get("/notifications/").json()["items"]
    assert len(items) == 1
    assert items[0]["actor"]["full_name"] == "Alice Note"
    assert items[0]["is_read"] is False
    assert client.get("/notifications/summary").json() == {"unread_count": 1}

    assert authed_client(alice).post(f"/notifications/{items[0]['id']}/read").status_code == 403
    marked = authed_client(bob).post(f"/notifications/{items[0]['id']}/read")
    assert marked.status_code == 200 and marked.json()["is_read"] is True
    assert authed_client(bob).get("/notifications/summary").json() == {"unread_count": 0}


def test_notifications_are_newest_first_and_mark_all_read(authed_client, user_factory):
    author = user_factory("busy-author")
    fans = [user_factory(f"busy-fan-{index}") for index in range(3)]
    post_id = authed_client(author).post("/posts/", data={"content": "popular"}).json()["id"]
    for fan in fans:
        authed_client(fan).post(f"/posts/{post_id}/like")

    client = authed_client(author)
    items = client.get("/notifications/").json()["items"]
    assert [item["actor_id"] for item in items] == [str(fan.id) for fan in reversed(fans)]

    assert client.post("/notifications/mark-read").json() == {"unread_count": 0}
    assert all(item["is_read"] for item in client.get("/notifications/").json()["items"])


def test_accept_from_notification_befriends_and_marks_read(authed_client, user_factory):
    alice = user_factory("inbox-alice")
    bob = user_factory("inbox-bob")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    client = authed_client(bob)
    notification_id = _request_notification_id(client)

    response = authed_client(bob).post(f"/notifications/{notification_id}/accept")

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    with SessionLocal() as session:
        request = session.scalar(select(FriendRequest))
        assert request.status == "accepted"
        chat = session.get(Chat, UUID(response.json()["chat_id"]))
        assert chat is not None and chat.type == "direct"
        note = session.scalar(select(Notification).where(Notification.type == "friend_request"))
        assert note.is_read is True

    assert authed_client(bob).post(f"/notifications/{notification_id}/accept").status_code == 404


def test_decline_from_notification_deletes_request(authed_client, user_factory):
    alice = user_factory("decline-alice")
    bob = user_factory("decline-bob")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    notification_id = _request_notification_id(authed_client(bob))

    assert authed_client(alice).post(f"/notifications/{notification_id}/decline").status_code == 403
    response = authed_client(bob).post(f"/notifications/{notification_id}/decline")

    assert response.json() == {"status": "declined", "chat_id": None}
    with SessionLocal() as session:
        assert session.scalar(select(FriendRequest)) is None
    resent = authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    assert resent.json()["status"] == "pending"


def test_only_friend_request_notifications_can_be_accepted(authed_client, user_factory):
    alice = user_factory("likes-alice")
    bob = user_factory("likes-bob")
    with SessionLocal() as session:
        post = Post(author_id=alice.id, content="Sunday hike")
        session.add(post)
        session.commit()
        post_id = post.id
    authed_client(bob).post("/friends/requests", json={"receiver_id": str(alice.id)})
    assert authed_client(bob).post(f"/posts/{post_id}/like").status_code == 200
    with SessionLocal() as session:
        like_note = session.scalar(select(Notification).where(Notification.type == "post_like"))
        like_note_id = like_note.id

    accepted = authed_client(alice).post(f"/notifications/{like_note_id}/accept")
    declined = authed_client(alice).post(f"/notifications/{like_note_id}/decline")

    assert accepted.status_code == 400
    assert declined.status_code == 400
    with SessionLocal() as session:
        assert session.scalar(select(FriendRequest)).status == "pending"
        assert session.get(Notification, like_note_id).is_read is False
