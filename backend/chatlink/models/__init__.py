"""Database models package."""

from .base import Base
from .chat import (
    ChatMessage,
    ChatRoom,
    ChatRoomParticipant,
    Friendship,
    FriendRequest,
    MessageRead,
    Notification,
    NotificationSettings,
    User,
    pair_key,
)
from .enums import (
    ChatRoomType,
    FriendRequestStatus,
    FriendshipStatus,
    MessageType,
    NotificationType,
)

__all__ = [
    "Base",
    "User",
    "NotificationSettings",
    "ChatRoom",
    "ChatRoomParticipant",
    "ChatMessage",
    "MessageRead",
    "FriendRequest",
    "Friendship",
    "Notification",
    "pair_key",
    "ChatRoomType",
    "MessageType",
    "FriendRequestStatus",
    "FriendshipStatus",
    "NotificationType",
]
