"""Integration tests for the feed."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from socialhub.database import SessionLocal
from socialhub.models import Notification, Post
from socialhub.services import post_service, storage_service
from socialhub.services.storage_service import StorageUploadResult


def _post_count() -> int:
    with SessionLocal() as session:
        return int(session.scalar(select(func.count(Post.id))) or 0)


def test_empty_post_is_rejected_without_writing(authed_client, user_factory):
    author = user_factory("quiet-author")
    client = authed_client(author)

    response = client.post("/posts/", data={"content": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please add some content to your post"
    assert _post_count() == 0


def test_text_post_notifies_friends_and_appears_in_feed(authed_client, user_factory, make_friends):
    author = user_factory("river-author", full_name="River Stone")
    friend = user_factory("river-friend")
    stranger = user_factory("river-stranger")
    make_friends(author, friend)
    client = authed_client(author)

    response = client.post("/posts/", data={"content": "Hello world"})
    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "Hello world"
    assert body["author"]["id"] == str(author.id)
    assert body["like_count"] == 0 and body["is_liked"] is False

    with SessionLocal() as session:
        notes = list(session.scalars(select(Notification).where(Notification.type == "new_post")))
    assert [note.recipient_id for note in notes] == [friend.id]
    assert notes[0].content == "River Stone shared a new post"
    assert notes[0].related_id == UUID(body["id"])

    feed = authed_client(stranger).get("/posts/feed").json()["items"]
    assert [item["id"] for item in feed] == [body["id"]]
    assert authed_client(stranger).get("/posts/feed", params={"tab": "following"}).json()["items"] == []
    following = authed_client(friend).get("/posts/feed", params={"tab": "following"}).json()["items"]
    assert [item["id"] for item in following] == [body["id"]]


def test_image_post_uploads_to_posts_bucket(authed_client, user_factory, monkeypatch):
    author = user_factory("pixel-author")
    calls: list[dict[str, object]] = []

    async def _fake_upload(file, *, bucket, folder, max_bytes):
        calls.append({"bucket": bucket, "folder": folder, "max_bytes": max_bytes, "name": file.filename})
        return StorageUploadResult(
            url=f"https://cdn.example.test/{bucket}/{folder}/pic.png",
            key=f"{folder}/pic.png",
            bucket=bucket,
            content_type="image/png",
            size=4,
        )

    monkeypatch.setattr(post_service, "upload_file_to_storage", _fake_upload)
    client = authed_client(author)

    response = client.post("/posts/", files={"image": ("pic.png", b"\x89PNG", "image/png")})

    assert response.status_code == 201
    assert response.json()["content"] == ""
    assert response.json()["image_url"].endswith(f"/posts/{author.id}/pic.png")
    assert calls == [{"bucket": "posts", "folder": str(author.id), "max_bytes": 5 * 1024 * 1024, "name": "pic.png"}]


def test_non_image_upload_is_rejected(authed_client, user_factory):
    client = authed_client(user_factory("doc-author"))

    response = client.post("/posts/", files={"image": ("notes.txt", b"plain text", "text/plain")})

    assert response.status_code == 400
    assert _post_count() == 0


def test_oversized_image_is_rejected_before_upload(authed_client, user_factory, monkeypatch):
    uploads: list[str] = []
    monkeypatch.setattr(storage_service, "_put_object", lambda file_obj, *, bucket, key, content_type: uploads.append(key))
    client = authed_client(user_factory("big-photo"))
    oversized = b"\x89PNG" + b"\0" * (5 * 1024 * 1024)

    response = client.post("/posts/", data={"content": "huge"}, files={"image": ("huge.png", oversized, "image/png")})

    assert response.status_code == 400
    assert response.json()["detail"] == "Image size should be less than 5MB"
    assert _post_count() == 0
    assert uploads == []


def test_likes_are_idempotent_and_notify_once(authed_client, user_factory):
    author = user_factory("like-author")
    fan = user_factory("like-fan")
    post_id = authed_client(author).post("/posts/", data={"content": "like me"}).json()["id"]
    client = authed_client(fan)

    first = client.post(f"/posts/{post_id}/like")
    second = client.post(f"/posts/{post_id}/like")
    assert first.json() == {"post_id": post_id, "like_count": 1, "is_liked": True}
    assert second.json()["like_count"] == 1

    feed_item = client.get(f"/posts/{post_id}").json()
    assert feed_item["is_liked"] is True and feed_item["like_count"] == 1

    with SessionLocal() as session:
        likes = list(session.scalars(select(Notification).where(Notification.type == "post_like")))
    assert len(likes) == 1
    assert likes[0].recipient_id == author.id and likes[0].content == "liked your post"

    removed = client.delete(f"/posts/{post_id}/like")
    assert removed.json()["like_count"] == 0
    assert client.delete(f"/posts/{post_id}/like").json()["like_count"] == 0


def test_own_like_does_not_notify(authed_client, user_factory):
    author = user_factory("self-liker")
    client = authed_client(author)
    post_id = client.post("/posts/", data={"content": "mine"}).json()["id"]

    assert client.post(f"/posts/{post_id}/like").status_code == 200
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Notification.id))) == 0


def test_comments_validate_and_notify_with_text(authed_client, user_factory):
    author = user_factory("comment-author")
    reader = user_factory("comment-reader")
    post_id = authed_client(author).post("/posts/", data={"content": "thoughts?"}).json()["id"]
    client = authed_client(reader)

    assert client.post(f"/posts/{post_id}/comments", json={"content": "  "}).status_code == 400

    created = client.post(f"/posts/{post_id}/comments", json={"content": "Nice one"})
    assert created.status_code == 201
    assert created.json()["user"]["id"] == str(reader.id)

    listing = client.get(f"/posts/{post_id}/comments").json()["items"]
    assert [item["content"] for item in listing] == ["Nice one"]
    assert client.get(f"/posts/{post_id}").json()["comment_count"] == 1

    with SessionLocal() as session:
        note = session.scalar(select(Notification).where(Notification.type == "post_comment"))
    assert note is not None and note.content == "Nice one" and note.recipient_id == author.id


def test_only_author_can_delete_post(authed_client, user_factory):
    author = user_factory("delete-author")
    other = user_factory("delete-other")
    post_id = authed_client(author).post("/posts/", data={"content": "temporary"}).json()["id"]
    authed_client(other).post(f"/posts/{post_id}/like")

    assert authed_client(other).delete(f"/posts/{post_id}").status_code == 403
    assert authed_client(author).delete(f"/posts/{post_id}").status_code == 204
    assert authed_client(author).get(f"/posts/{post_id}").status_code == 404
    assert _post_count() == 0
