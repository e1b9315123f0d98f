"""Service layer exports."""
from .auth_service import (
    AuthProviderError,
    decode_access_token,
    get_bearer_token,
    get_current_user,
    get_optional_user,
    sign_in,
    sign_out,
    sign_up,
    update_password,
)
from .chat_service import (
    ChatView,
    build_chat_view,
    create_chat,
    get_or_create_direct_chat,
    list_chats,
    open_chat_with_friend,
    require_participant,
)
from .cleanup_service import CleanupError, CleanupSummary, perform_cleanup, run_cleanup
from .friendship_service import (
    accept_friend_request,
    accept_from_notification,
    decline_from_notification,
    friend_suggestions,
    list_friend_requests,
    list_friends,
    reject_friend_request,
    remove_friend,
    search_users,
    send_friend_request,
)
from .message_service import end_call, list_messages, mark_messages_read, send_message, start_call
from .notification_service import (
    NotificationType,
    add_notification,
    count_unread_notifications,
    list_notifications,
    mark_all_read,
    mark_read,
)
from .post_service import (
    FeedRecord,
    add_comment,
    create_post,
    delete_post,
    get_feed_record,
    like_post,
    list_comments,
    list_feed,
    unlike_post,
)
from .profile_service import (
    UserStats,
    connect_social_link,
    disconnect_social_link,
    get_profile,
    update_profile,
    upload_avatar,
    user_stats,
)
from .settings_service import get_or_create_settings, list_activity, record_activity, update_settings
from .storage_service import StorageConfigurationError, StorageUploadError
from .story_service import (
    StoryGroup,
    create_story,
    create_story_from_data_url,
    list_stories,
    list_story_comments,
    reply_to_story,
    view_story,
)
from .suggestion_service import CANNED_SUGGESTIONS, suggest_reply

__all__ = [
    "AuthProviderError",
    "decode_access_token",
    "get_bearer_token",
    "get_current_user",
    "get_optional_user",
    "sign_in",
    "sign_out",
    "sign_up",
    "update_password",
    "ChatView",
    "build_chat_view",
    "create_chat",
    "get_or_create_direct_chat",
    "list_chats",
    "open_chat_with_friend",
    "require_participant",
    "CleanupError",
    "CleanupSummary",
    "perform_cleanup",
    "run_cleanup",
    "accept_friend_request",
    "accept_from_notification",
    "decline_from_notification",
    "friend_suggestions",
    "list_friend_requests",
    "list_friends",
    "reject_friend_request",
    "remove_friend",
    "search_users",
    "send_friend_request",
    "end_call",
    "list_messages",
    "mark_messages_read",
    "send_message",
    "start_call",
    "NotificationType",
    "add_notification",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_read",
    "mark_read",
    "FeedRecord",
    "add_comment",
    "create_post",
    "delete_post",
    "get_feed_record",
    "like_post",
    "list_comments",
    "list_feed",
    "unlike_post",
    "UserStats",
    "get_profile",
    "update_profile",
    "connect_social_link",
    "disconnect_social_link",
    "upload_avatar",
    "user_stats",
    "get_or_create_settings",
    "list_activity",
    "record_activity",
    "update_settings",
    "StorageConfigurationError",
    "StorageUploadError",
    "StoryGroup",
    "create_story",
    "create_story_from_data_url",
    "list_stories",
    "list_story_comments",
    "reply_to_story",
    "view_story",
    "CANNED_SUGGESTIONS",
    "suggest_reply",
]
