"""Integration tests for friend requests, friendships and suggestions."""
from __future__ import annotations

from sqlalchemy import func, select

from socialhub.database import SessionLocal
from socialhub.models import Chat, FriendRequest, Notification


def _notifications(type_: str) -> list[Notification]:
    with SessionLocal() as session:
        return list(session.scalars(select(Notification).where(Notification.type == type_)))


def test_send_request_notifies_receiver_and_rejects_duplicates(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    client = authed_client(alice)

    response = client.post("/friends/requests", json={"receiver_id": str(bob.id)})
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    notes = _notifications("friend_request")
    assert len(notes) == 1
    assert notes[0].recipient_id == bob.id and notes[0].actor_id == alice.id
    assert notes[0].content == "sent you a friend request"

    assert client.post("/friends/requests", json={"receiver_id": str(bob.id)}).status_code == 409
    assert client.post("/friends/requests", json={"receiver_id": str(alice.id)}).status_code == 400

    incoming = authed_client(bob).get("/friends/requests").json()["items"]
    assert len(incoming) == 1
    assert incoming[0]["sender"]["id"] == str(alice.id)


def test_reverse_request_accepts_pending_one(authed_client, user_factory):
    alice = user_factory("alice-rev")
    bob = user_factory("bob-rev")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})

    response = authed_client(bob).post("/friends/requests", json={"receiver_id": str(alice.id)})

    assert response.json()["status"] == "accepted"
    accepted = _notifications("friend_request_accepted")
    assert [note.recipient_id for note in accepted] == [alice.id]
    with SessionLocal() as session:
        assert session.scalar(select(func.count(FriendRequest.id))) == 1
        assert session.scalar(select(func.count(Chat.id)).where(Chat.type == "direct")) == 1


def test_accept_creates_single_direct_chat(authed_client, user_factory):
    alice = user_factory("alice-acc")
    bob = user_factory("bob-acc")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    request_id = authed_client(bob).get("/friends/requests").json()["items"][0]["id"]

    assert authed_client(alice).post(f"/friends/requests/{request_id}/accept").status_code == 403

    accepted = authed_client(bob).post(f"/friends/requests/{request_id}/accept")
    assert accepted.status_code == 200
    chat_id = accepted.json()["chat_id"]
    assert chat_id

    assert authed_client(bob).post(f"/friends/requests/{request_id}/accept").status_code == 409
    assert [note.recipient_id for note in _notifications("friend_accepted")] == [alice.id]

    friends = authed_client(alice).get("/friends/").json()["friends"]
    assert [(item["id"], item["chat_id"]) for item in friends] == [(str(bob.id), chat_id)]

    # A second route to the same pair must reuse the chat.
    reopened = authed_client(alice).post(f"/chats/with/{bob.id}")
    assert reopened.json()["id"] == chat_id


def test_reject_keeps_row_and_resend_resets_it(authed_client, user_factory):
    alice = user_factory("alice-rej")
    bob = user_factory("bob-rej")
    authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    request_id = authed_client(bob).get("/friends/requests").json()["items"][0]["id"]

    rejected = authed_client(bob).post(f"/friends/requests/{request_id}/reject")
    assert rejected.json()["status"] == "rejected"
    assert authed_client(bob).get("/friends/requests").json()["items"] == []

    resent = authed_client(alice).post("/friends/requests", json={"receiver_id": str(bob.id)})
    assert resent.json()["status"] == "pending"
    with SessionLocal() as session:
        rows = list(session.scalars(select(FriendRequest)))
    assert len(rows) == 1 and rows[0].status == "pending"


def test_remove_friend_deletes_and_notifies(authed_client, user_factory, make_friends):
    alice = user_factory("alice-rm")
    bob = user_factory("bob-rm")
    make_friends(alice, bob)

    assert authed_client(bob).delete(f"/friends/{alice.id}").status_code == 204
    assert authed_client(alice).get("/friends/").json()["friends"] == []
    assert authed_client(bob).delete(f"/friends/{alice.id}").status_code == 404

    removed = _notifications("friend_removed")
    assert [note.recipient_id for note in removed] == [alice.id]
    assert removed[0].content == "removed you from their friends list"


def test_search_excludes_self_and_friends_and_flags_pending(authed_client, user_factory, make_friends):
    me = user_factory("searcher", email="searcher@corp.test")
    friend = user_factory("corp-friend", email="friend@corp.test")
    target = user_factory("corp-target", email="target@corp.test")
    user_factory("elsewhere", email="other@home.test")
    make_friends(me, friend)
    client = authed_client(me)
    client.post("/friends/requests", json={"receiver_id": str(target.id)})

    results = client.get("/friends/search", params={"q": "CORP.test", "mode": "email"}).json()["results"]
    assert [(item["id"], item["pending"]) for item in results] == [(str(target.id), True)]

    by_username = client.get("/friends/search", params={"q": "else", "mode": "username"}).json()["results"]
    assert [item["username"] for item in by_username] == ["elsewhere"]


def test_suggestions_rank_friends_of_friends(authed_client, user_factory, make_friends):
    me = user_factory("hub")
    first = user_factory("hub-first")
    second = user_factory("hub-second")
    popular = user_factory("popular")
    casual = user_factory("casual")
    pending = user_factory("pending-one")
    make_friends(me, first)
    make_friends(me, second)
    make_friends(first, popular)
    make_friends(second, popular)
    make_friends(first, casual)
    make_friends(first, pending)
    authed_client(pending).post("/friends/requests", json={"receiver_id": str(me.id)})

    items = authed_client(me).get("/friends/suggestions").json()["items"]

    assert [(item["user"]["id"], item["mutual_friends"]) for item in items] == [
        (str(popular.id), 2),
        (str(casual.id), 1),
    ]


def test_suggestions_without_friends_fall_back_to_other_users(authed_client, user_factory):
    loner = user_factory("loner")
    others = {user_factory(f"someone-{index}").id for index in range(3)}

    items = authed_client(loner).get("/friends/suggestions").json()["items"]

    assert {item["user"]["id"] for item in items} == {str(uid) for uid in others}
    assert all(item["mutual_friends"] == 0 for item in items)
