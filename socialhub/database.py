"""SQLAlchemy engine and session factories for SocialHub."""
from __future__ import annotations

from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings


def _build_engine(url: str) -> Engine:
    options: dict[str, Any] = {"pool_pre_ping": True, "future": True}
    if url.startswith("sqlite"):
        # Request handlers and the cleanup thread share one file database.
        options["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **options)


engine: Engine = _build_engine(get_settings().database_url)

# Rows stay readable after commit; responses are built from them post-commit.
SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True, expire_on_commit=False)

Base = declarative_base()


def get_session() -> Generator[Session, None, None]:
    """Yield one session per request and close it afterwards."""
    with SessionLocal() as session:
        yield session


def create_session() -> Session:
    """Session for work outside a request (cleanup loop, socket authorization)."""
    return SessionLocal()


def init_db() -> None:
    from . import models  # noqa: F401  registers every table on Base.metadata

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "SessionLocal", "engine", "get_session", "create_session", "init_db"]
