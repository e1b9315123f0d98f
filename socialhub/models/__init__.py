"""Convenience exports for ORM models."""
from .associations import chat_participants, message_reads
from .chat import CHAT_TYPES, MESSAGE_TYPES, Chat, Message, direct_chat_key
from .friend_request import FRIEND_REQUEST_STATUSES, FriendRequest
from .notification import Notification
from .post import Post, PostComment, PostLike
from .settings import AccountActivity, UserSettings
from .story import Story, StoryComment, StoryView
from .user import User

__all__ = [
    "chat_participants",
    "message_reads",
    "CHAT_TYPES",
    "MESSAGE_TYPES",
    "Chat",
    "Message",
    "direct_chat_key",
    "FRIEND_REQUEST_STATUSES",
    "FriendRequest",
    "Notification",
    "Post",
    "PostLike",
    "PostComment",
    "AccountActivity",
    "UserSettings",
    "Story",
    "StoryView",
    "StoryComment",
    "User",
]
