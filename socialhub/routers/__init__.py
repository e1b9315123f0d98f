"""Aggregate router exports."""
from .auth import router as auth_router
from .chats import router as chats_router
from .friends import router as friends_router
from .functions import router as functions_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .profiles import router as profiles_router
from .realtime import router as realtime_router
from .settings import router as settings_router
from .stories import router as stories_router

__all__ = [
    "auth_router",
    "chats_router",
    "friends_router",
    "functions_router",
    "notifications_router",
    "posts_router",
    "profiles_router",
    "realtime_router",
    "settings_router",
    "stories_router",
]
