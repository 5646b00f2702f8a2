from __future__ import annotations

from enum import Enum


class ChatRoomType(str, Enum):
    """Kinds of chat rooms."""

    DIRECT = "direct"
    GROUP = "group"


class MessageType(str, Enum):
    """Payload kinds a chat message may carry."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    SYSTEM = "system"


class FriendRequestStatus(str, Enum):
    """Lifecycle states for friend requests."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendshipStatus(str, Enum):
    """States of an established friendship."""

    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class NotificationType(str, Enum):
    """Events that produce notification records."""

    MESSAGE = "message"
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    SYSTEM = "system"
