"""Pydantic schemas for API payloads."""

from .auth import LoginRequest, Token, UserCreate, UserRead
from .chats import (
    ChatRoomRead,
    ChatRoomUpdate,
    DirectChatCreate,
    FanOutRead,
    GroupChatCreate,
    MessageCreate,
    MessageDeliveryRead,
    MessageRead,
    MessageSummary,
)
from .friends import FriendRead, FriendRequestCreate, FriendRequestList, FriendRequestRead
from .notifications import (
    MarkAllReadResult,
    NotificationRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    UnreadCount,
)
from .users import PublicUser, UserProfileRead, UserProfileUpdate, UserSearchResult

__all__ = [
    "LoginRequest",
    "Token",
    "UserCreate",
    "UserRead",
    "PublicUser",
    "UserProfileRead",
    "UserProfileUpdate",
    "UserSearchResult",
    "FriendRead",
    "FriendRequestCreate",
    "FriendRequestList",
    "FriendRequestRead",
    "ChatRoomRead",
    "ChatRoomUpdate",
    "DirectChatCreate",
    "GroupChatCreate",
    "MessageCreate",
    "MessageRead",
    "MessageSummary",
    "FanOutRead",
    "MessageDeliveryRead",
    "NotificationRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
    "UnreadCount",
    "MarkAllReadResult",
]
