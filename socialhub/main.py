"""FastAPI application wiring: routers, CORS and the story cleanup scheduler."""
from __future__ import annotations

import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import create_session, init_db
from .routers import (
    auth_router,
    chats_router,
    friends_router,
    functions_router,
    notifications_router,
    posts_router,
    profiles_router,
    realtime_router,
    settings_router,
    stories_router,
)
from .services import CleanupError, run_cleanup

logger = logging.getLogger(__name__)

settings = get_settings()

_ROUTERS = (
    auth_router,
    profiles_router,
    friends_router,
    chats_router,
    posts_router,
    stories_router,
    notifications_router,
    settings_router,
    realtime_router,
    functions_router,
)


def _cors_origins(raw: str | None) -> list[str]:
    origins = [origin.strip() for origin in (raw or "").split(",") if origin.strip()]
    return origins or ["*"]


def _cleanup_enabled() -> bool:
    return not settings.disable_cleanup and os.getenv("PYTEST_CURRENT_TEST") is None


class CleanupScheduler:
    """Runs :func:`run_cleanup` in a worker thread every ``interval`` seconds until stopped."""

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def run_once(self) -> None:
        try:
            summary = await asyncio.to_thread(run_cleanup, create_session)
        except CleanupError:
            logger.exception("Scheduled story cleanup failed")
            return
        if summary.total:
            logger.info(
                "Pruned %d expired stories (%d views, %d comments)",
                summary.stories,
                summary.story_views,
                summary.story_comments,
            )

    async def _loop(self) -> None:
        while not self._stop.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None


app = FastAPI(title=settings.app_name, version=settings.api_version)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
for _router in _ROUTERS:
    app.include_router(_router)

cleanup_scheduler = CleanupScheduler(interval=settings.cleanup_interval_hours * 3600)


@app.on_event("startup")
async def _startup() -> None:
    try:
        init_db()
    except Exception:
        logger.exception("Database initialisation failed")
        raise

    if _cleanup_enabled():
        cleanup_scheduler.start()
    else:
        logger.info("Story cleanup scheduler disabled")


@app.on_event("shutdown")
async def _shutdown() -> None:
    await cleanup_scheduler.stop()


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": settings.app_name, "version": settings.api_version}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
