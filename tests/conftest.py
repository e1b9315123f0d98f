"""Shared fixtures: a SQLite schema, user factories and impersonating clients."""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from jose import jwt

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_socialhub.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")

from socialhub.database import Base, SessionLocal, engine  # noqa: E402
from socialhub.main import app  # noqa: E402
from socialhub.models import FriendRequest, User  # noqa: E402
from socialhub.services import get_current_user  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    yield
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()


@pytest.fixture
def user_factory() -> Callable[..., User]:
    def _factory(username: str, *, full_name: str | None = None, email: str | None = None) -> User:
        with SessionLocal() as session:
            user = User(
                id=uuid.uuid4(),
                username=username,
                full_name=full_name or username.replace("-", " ").title(),
                email=email or f"{username}@example.test",
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    return _factory


@pytest.fixture
def make_friends() -> Callable[[User, User], None]:
    def _befriend(first: User, second: User) -> None:
        with SessionLocal() as session:
            session.add(FriendRequest(sender_id=first.id, receiver_id=second.id, status="accepted"))
            session.commit()

    return _befriend


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authed_client(client: TestClient) -> Iterator[Callable[[User], TestClient]]:
    def _with_user(user: User) -> TestClient:
        def _override() -> User:
            return user

        app.dependency_overrides[get_current_user] = _override
        return client

    yield _with_user
    app.dependency_overrides.clear()


@pytest.fixture
def token_for() -> Callable[[User], str]:
    def _issue(user: User) -> str:
        now = datetime.now(timezone.utc)
        claims = {"sub": str(user.id), "aud": "authenticated", "iat": now, "exp": now + timedelta(hours=1)}
        return jwt.encode(claims, os.environ["JWT_SECRET_KEY"], algorithm="HS256")

    return _issue
