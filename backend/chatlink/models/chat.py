from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatlink.models.base import Base
from chatlink.models.enums import (
    ChatRoomType,
    FriendRequestStatus,
    FriendshipStatus,
    MessageType,
    NotificationType,
)


def _enum_column(enum_cls, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


def pair_key(user_id: int, other_id: int) -> str:
    """Order-independent key identifying a pair of users."""

    low, high = (user_id, other_id) if user_id < other_id else (other_id, user_id)
    return f"{low}:{high}"


class User(Base):
    """Application user profile. The primary key is the session identifier."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    status_message: Mapped[str | None] = mapped_column(String(255))
    avatar_path: Mapped[str | None] = mapped_column(String(512))
    avatar_content_type: Mapped[str | None] = mapped_column(String(128))
    avatar_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    notification_settings: Mapped["NotificationSettings | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    chat_participations: Mapped[list["ChatRoomParticipant"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    sent_friend_requests: Mapped[list["FriendRequest"]] = relationship(
        back_populates="from_user", foreign_keys="FriendRequest.from_user_id", cascade="all, delete-orphan"
    )
    received_friend_requests: Mapped[list["FriendRequest"]] = relationship(
        back_populates="to_user", foreign_keys="FriendRequest.to_user_id", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def avatar_url(self) -> str | None:
        from chatlink.config import get_settings

        if not self.avatar_path:
            return None
        settings = get_settings()
        base = settings.avatar_base_url.rstrip("/")
        version = (
            int(self.avatar_updated_at.timestamp()) if self.avatar_updated_at is not None else None
        )
        suffix = f"?v={version}" if version is not None else ""
        return f"{base}/{self.id}{suffix}"


class NotificationSettings(Base):
    """Per-user notification toggles. A missing row means every flag is on."""

    __tablename__ = "notification_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    push_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    message_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    friend_request_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="notification_settings")


class ChatRoom(Base):
    """Direct or group conversation with a cached summary of its last message."""

    __tablename__ = "chat_rooms"
    __table_args__ = (
        UniqueConstraint("direct_key", name="uq_chat_rooms_direct_key"),
        Index("ix_chat_rooms_updated_at", "updated_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[ChatRoomType] = mapped_column(
        _enum_column(ChatRoomType, "chat_room_type"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(128))
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Set only while an active direct room exists for the pair.
    direct_key: Mapped[str | None] = mapped_column(String(64))

    last_message_id: Mapped[int | None] = mapped_column(nullable=True)
    last_message_text: Mapped[str | None] = mapped_column(String(64))
    last_message_sender_id: Mapped[int | None] = mapped_column(nullable=True)
    last_message_type: Mapped[MessageType | None] = mapped_column(
        _enum_column(MessageType, "chat_last_message_type"), nullable=True
    )
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    created_by: Mapped[User | None] = relationship(foreign_keys=[created_by_id])
    participants: Mapped[list["ChatRoomParticipant"]] = relationship(
        back_populates="chat_room",
        cascade="all, delete-orphan",
        order_by="ChatRoomParticipant.id",
    )
    messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="chat_room",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )

    @property
    def participant_ids(self) -> list[int]:
        return [participant.user_id for participant in self.participants]

    def has_user(self, user_id: int) -> bool:
        return any(participant.user_id == user_id for participant in self.participants)


class ChatRoomParticipant(Base):
    """Membership of a user in a chat room."""

    __tablename__ = "chat_room_participants"
    __table_args__ = (
        UniqueConstraint("chat_room_id", "user_id", name="uq_chat_room_participant"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    chat_room_id: Mapped[int] = mapped_column(
        ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    chat_room: Mapped[ChatRoom] = relationship(back_populates="participants")
    user: Mapped[User] = relationship(back_populates="chat_participations")


class ChatMessage(Base):
    """Message posted in a chat room. Only its read receipts change after creation."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_room_created", "chat_room_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    chat_room_id: Mapped[int] = mapped_column(
        ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[MessageType] = mapped_column(
        _enum_column(MessageType, "chat_message_type"),
        default=MessageType.TEXT,
        nullable=False,
    )
    reply_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("chat_messages.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    chat_room: Mapped[ChatRoom] = relationship(back_populates="messages")
    sender: Mapped[User] = relationship(foreign_keys=[sender_id])
    reads: Mapped[list["MessageRead"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="MessageRead.id",
    )

    @property
    def read_by(self) -> list[int]:
        return [receipt.user_id for receipt in self.reads]


class MessageRead(Base):
    """Read receipt recording that a user has seen a message."""

    __tablename__ = "chat_message_reads"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_chat_message_read"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    message_id: Mapped[int] = mapped_column(
        ForeignKey("chat_messages.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    message: Mapped[ChatMessage] = relationship(back_populates="reads")


class FriendRequest(Base):
    """Directional request from one user to befriend another."""

    __tablename__ = "friend_requests"
    __table_args__ = (
        UniqueConstraint("pending_key", name="uq_friend_requests_pending_key"),
        Index("ix_friend_requests_to_status", "to_user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    from_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    to_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[FriendRequestStatus] = mapped_column(
        _enum_column(FriendRequestStatus, "friend_request_status"),
        default=FriendRequestStatus.PENDING,
        nullable=False,
    )
    # Pair key while pending, cleared once the request is answered.
    pending_key: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    from_user: Mapped[User] = relationship(
        back_populates="sent_friend_requests", foreign_keys=[from_user_id]
    )
    to_user: Mapped[User] = relationship(
        back_populates="received_friend_requests", foreign_keys=[to_user_id]
    )


class Friendship(Base):
    """Undirected friendship, stored with ``user1_id < user2_id``."""

    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_friendship_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user1_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user2_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[FriendshipStatus] = mapped_column(
        _enum_column(FriendshipStatus, "friendship_status"),
        default=FriendshipStatus.ACCEPTED,
        nullable=False,
    )
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("friend_requests.id", ondelete="SET NULL"), nullable=True
    )
    accepted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    blocked_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    blocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user1: Mapped[User] = relationship(foreign_keys=[user1_id])
    user2: Mapped[User] = relationship(foreign_keys=[user2_id])
    request: Mapped[FriendRequest | None] = relationship(foreign_keys=[request_id])

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id


class Notification(Base):
    """Per-user notification produced by a message or friend request event."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[NotificationType] = mapped_column(
        _enum_column(NotificationType, "notification_type"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="notifications")
