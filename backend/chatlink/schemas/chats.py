"""Schemas for chat rooms and messages."""

from datetime import datetime

from pydantic import BaseModel, Field, constr

from chatlink.models.enums import ChatRoomType, MessageType


class MessageSummary(BaseModel):
    """Truncated copy of the newest message cached on a chat room."""

    id: int
    text: str
    sender_id: int
    type: MessageType
    timestamp: datetime | None = None


class ChatRoomRead(BaseModel):
    """Summary of a chat room including participants."""

    id: int
    type: ChatRoomType
    name: str | None = None
    participants: list[int]
    created_by_id: int | None = None
    is_active: bool
    last_message: MessageSummary | None = None
    created_at: datetime
    updated_at: datetime


class DirectChatCreate(BaseModel):
    """Payload for opening the direct chat with another user."""

    user_id: int = Field(..., description="The other participant")


class GroupChatCreate(BaseModel):
    """Payload for creating a group chat."""

    participant_ids: list[int] = Field(..., min_length=1, description="Users to include besides the creator")
    name: constr(strip_whitespace=True, min_length=1, max_length=128)


class ChatRoomUpdate(BaseModel):
    """Payload for renaming a group chat."""

    name: constr(strip_whitespace=True, min_length=1, max_length=128)


class MessageCreate(BaseModel):
    """Payload for sending a new message."""

    text: constr(strip_whitespace=True, min_length=1)
    type: MessageType = MessageType.TEXT
    reply_to_id: int | None = None


class MessageRead(BaseModel):
    """Representation of a chat message."""

    id: int
    chat_id: int
    sender_id: int
    text: str
    type: MessageType
    reply_to_id: int | None = None
    timestamp: datetime
    read_by: list[int] = Field(default_factory=list)


class FanOutRead(BaseModel):
    """Outcome of the notification writes triggered by an event."""

    delivered: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)


class MessageDeliveryRead(BaseModel):
    """Stored message plus the best-effort notification outcome."""

    message: MessageRead
    notifications: FanOutRead
