"""Tests for user settings, account activity and profile endpoints."""
from __future__ import annotations

from datetime import timedelta

from socialhub.database import SessionLocal
from socialhub.models import Post, Story, User
from socialhub.models.base import utcnow
from socialhub.services import profile_service, storage_service
from socialhub.services.settings_service import notifications_enabled
from socialhub.services.storage_service import StorageUploadResult


def test_settings_default_then_update_records_activity(authed_client, user_factory):
    user = user_factory("prefs")
    client = authed_client(user)

    defaults = client.get("/settings/")
    assert defaults.status_code == 200
    assert defaults.json()["notifications_enabled"] is True
    assert defaults.json()["theme"] == "light"

    updated = client.patch("/settings/", json={"notifications_enabled": False, "theme": "dark"})
    assert updated.status_code == 200
    assert updated.json()["theme"] == "dark"
    with SessionLocal() as session:
        assert notifications_enabled(session, user.id) is False

    activity = client.get("/settings/activity")
    assert [entry["action"] for entry in activity.json()["items"]] == ["settings_updated"]


def test_settings_reject_unknown_theme(authed_client, user_factory):
    client = authed_client(user_factory("themer"))

    assert client.patch("/settings/", json={"theme": "neon"}).status_code == 422


def test_notifications_enabled_without_settings_row(user_factory):
    user = user_factory("fresh")
    with SessionLocal() as session:
        assert notifications_enabled(session, user.id) is True


def test_update_profile_and_username_conflict(authed_client, user_factory):
    user_factory("claimed")
    user = user_factory("editor")
    client = authed_client(user)

    response = client.patch("/profiles/me", json={"bio": "Hello there", "full_name": "Edith Tor"})
    assert response.status_code == 200
    assert response.json()["bio"] == "Hello there"
    assert response.json()["full_name"] == "Edith Tor"

    conflict = client.patch("/profiles/me", json={"username": "CLAIMED"})
    assert conflict.status_code == 409


def test_profile_lookup_and_stats(authed_client, user_factory, make_friends):
    user = user_factory("counted")
    friend = user_factory("counted-friend")
    make_friends(user, friend)
    with SessionLocal() as session:
        session.add(Post(author_id=user.id, content="first"))
        now = utcnow()
        session.add(Story(user_id=user.id, image_url="https://cdn.example.test/a.png", created_at=now, expires_at=now + timedelta(hours=24)))
        session.add(
            Story(
                user_id=user.id,
                image_url="https://cdn.example.test/b.png",
                created_at=now - timedelta(days=2),
                expires_at=now - timedelta(days=1),
            )
        )
        session.commit()
    client = authed_client(friend)

    profile = client.get(f"/profiles/{user.id}")
    assert profile.status_code == 200
    assert profile.json()["username"] == "counted"

    stats = client.get(f"/profiles/{user.id}/stats")
    assert stats.json() == {"friends": 1, "posts": 1, "stories": 1}


def test_unknown_profile_returns_404(authed_client, user_factory):
    client = authed_client(user_factory("lookup"))

    assert client.get("/profiles/00000000-0000-0000-0000-000000000000").status_code == 404


def test_avatar_upload_updates_profile(authed_client, user_factory, monkeypatch):
    user = user_factory("avatar-owner")
    captured: dict[str, object] = {}

    async def _fake_upload(file, *, bucket, folder, max_bytes):
        captured.update(bucket=bucket, max_bytes=max_bytes)
        return StorageUploadResult(
            url=f"https://cdn.example.test/{bucket}/{folder}/{file.filename}",
            key=f"{folder}/{file.filename}",
            bucket=bucket,
            content_type=file.content_type,
            size=3,
        )

    monkeypatch.setattr(profile_service, "upload_file_to_storage", _fake_upload)
    client = authed_client(user)

    response = client.post("/profiles/me/avatar", files={"file": ("me.jpg", b"jpg", "image/jpeg")})

    assert response.status_code == 200
    assert response.json()["avatar_url"] == f"https://cdn.example.test/avatars/{user.id}/me.jpg"
    assert captured["bucket"] == "avatars"


def test_avatar_over_two_megabytes_is_rejected(authed_client, user_factory, monkeypatch):
    uploads: list[str] = []
    monkeypatch.setattr(storage_service, "_put_object", lambda file_obj, *, bucket, key, content_type: uploads.append(key))
    user = user_factory("heavy-avatar")
    client = authed_client(user)

    response = client.post(
        "/profiles/me/avatar",
        files={"file": ("me.png", b"\0" * (2 * 1024 * 1024 + 1), "image/png")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Image size should be less than 2MB"
    assert uploads == []
    with SessionLocal() as session:
        assert session.get(User, user.id).avatar_url is None


def test_privacy_toggles_default_on_and_update_independently(authed_client, user_factory):
    client = authed_client(user_factory("tracker"))

    defaults = client.get("/settings/").json()
    assert defaults["sleep_tracking_enabled"] is True
    assert defaults["nutrition_tracking_enabled"] is True

    updated = client.patch("/settings/", json={"sleep_tracking_enabled": False}).json()

    assert updated["sleep_tracking_enabled"] is False
    assert updated["nutrition_tracking_enabled"] is True
    assert updated["notifications_enabled"] is True


def test_social_links_connect_merge_and_disconnect(authed_client, user_factory):
    user = user_factory("linked")
    client = authed_client(user)

    assert client.get("/profiles/me").json()["social_links"] == {}
    first = client.put("/profiles/me/social-links/github", json={"value": "  linked-dev "})
    second = client.put("/profiles/me/social-links/website", json={"value": "https://linked.example.com"})

    assert first.status_code == 200
    assert second.json()["social_links"] == {"github": "linked-dev", "website": "https://linked.example.com"}
    assert authed_client(user_factory("visitor")).get(f"/profiles/{user.id}").json()["social_links"]["github"] == "linked-dev"

    removed = authed_client(user).delete("/profiles/me/social-links/github")
    assert removed.json()["social_links"] == {"website": "https://linked.example.com"}
    assert authed_client(user).delete("/profiles/me/social-links/github").status_code == 404


def test_social_links_validate_platform_and_value(authed_client, user_factory):
    client = authed_client(user_factory("unlinked"))

    blank = client.put("/profiles/me/social-links/instagram", json={"value": "   "})
    unknown = client.put("/profiles/me/social-links/myspace", json={"value": "tom"})

    assert blank.status_code == 400
    assert blank.json()["detail"] == "Please enter your instagram username or URL"
    assert unknown.status_code == 422
