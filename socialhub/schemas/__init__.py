"""Convenience exports for schema layer."""
from .auth import PasswordUpdateRequest, SessionResponse, SignInRequest, SignUpRequest, UserPublicProfile
from .chats import (
    CallStartRequest,
    ChatCreateRequest,
    ChatListResponse,
    ChatResponse,
    MarkReadResponse,
    MessageListResponse,
    MessageResponse,
    MessageSendRequest,
    SuggestionRequest,
    SuggestionResponse,
)
from .friends import (
    FriendActionResponse,
    FriendListResponse,
    FriendRequestListResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendSearchResponse,
    FriendSearchResult,
    FriendSuggestion,
    FriendSuggestionListResponse,
    FriendSummary,
)
from .notifications import (
    NotificationActionResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationSummaryResponse,
)
from .posts import (
    PostCommentCreate,
    PostCommentListResponse,
    PostCommentResponse,
    PostFeedResponse,
    PostLikeResponse,
    PostResponse,
)
from .profiles import ProfileResponse, ProfileUpdateRequest, SocialLinkRequest, SocialPlatform, UserStatsResponse
from .settings import AccountActivityListResponse, AccountActivityResponse, SettingsResponse, SettingsUpdateRequest
from .stories import (
    StoryBucket,
    StoryCommentCreate,
    StoryCommentListResponse,
    StoryCommentResponse,
    StoryFeedResponse,
    StoryItem,
    StoryReplyResponse,
)

__all__ = [
    "PasswordUpdateRequest",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "UserPublicProfile",
    "CallStartRequest",
    "ChatCreateRequest",
    "ChatListResponse",
    "ChatResponse",
    "MarkReadResponse",
    "MessageListResponse",
    "MessageResponse",
    "MessageSendRequest",
    "SuggestionRequest",
    "SuggestionResponse",
    "FriendActionResponse",
    "FriendListResponse",
    "FriendRequestListResponse",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendSearchResponse",
    "FriendSearchResult",
    "FriendSuggestion",
    "FriendSuggestionListResponse",
    "FriendSummary",
    "NotificationActionResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "NotificationSummaryResponse",
    "PostCommentCreate",
    "PostCommentListResponse",
    "PostCommentResponse",
    "PostFeedResponse",
    "PostLikeResponse",
    "PostResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "SocialLinkRequest",
    "SocialPlatform",
    "UserStatsResponse",
    "AccountActivityListResponse",
    "AccountActivityResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "StoryBucket",
    "StoryCommentCreate",
    "StoryCommentListResponse",
    "StoryCommentResponse",
    "StoryFeedResponse",
    "StoryItem",
    "StoryReplyResponse",
]
