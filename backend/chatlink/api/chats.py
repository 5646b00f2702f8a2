"""Chat room and message endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from chatlink.api.deps import get_session_context
from chatlink.api.notifications import publish_fan_out
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.models import ChatMessage, ChatRoom
from chatlink.schemas import (
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
from chatlink.services import chat_topic, chats, event_hub, user_topic

router = APIRouter(prefix="/chats", tags=["chats"])


def serialize_chat(chat: ChatRoom) -> ChatRoomRead:
    last_message = None
    if chat.last_message_id is not None:
        last_message = MessageSummary(
            id=chat.last_message_id,
            text=chat.last_message_text or "",
            sender_id=chat.last_message_sender_id,
            type=chat.last_message_type,
            timestamp=chat.last_message_at,
        )
    return ChatRoomRead(
        id=chat.id,
        type=chat.type,
        name=chat.name,
        participants=chat.participant_ids,
        created_by_id=chat.created_by_id,
        is_active=chat.is_active,
        last_message=last_message,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
    )


def serialize_message(message: ChatMessage) -> MessageRead:
    return MessageRead(
        id=message.id,
        chat_id=message.chat_room_id,
        sender_id=message.sender_id,
        text=message.text,
        type=message.type,
        reply_to_id=message.reply_to_id,
        timestamp=message.created_at,
        read_by=message.read_by,
    )


@router.get("", response_model=list[ChatRoomRead])
async def list_chats(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[ChatRoomRead]:
    """Return active chats of the current user, most recently updated first."""

    return [serialize_chat(chat) for chat in chats.list_user_chats(db, ctx.user_id)]


@router.post("/direct", response_model=ChatRoomRead)
async def open_direct_chat(
    payload: DirectChatCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> ChatRoomRead:
    """Return the direct chat with another user, creating it on first contact."""

    return serialize_chat(chats.get_or_create_direct_chat(db, ctx, payload.user_id))


@router.post("/group", response_model=ChatRoomRead, status_code=status.HTTP_201_CREATED)
async def create_group_chat(
    payload: GroupChatCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> ChatRoomRead:
    chat = chats.create_group_chat(db, ctx, payload.participant_ids, payload.name)
    return serialize_chat(chat)


@router.get("/{chat_id}", response_model=ChatRoomRead)
async def read_chat(
    chat_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> ChatRoomRead:
    return serialize_chat(chats.get_chat(db, ctx, chat_id))


@router.patch("/{chat_id}", response_model=ChatRoomRead)
async def rename_chat(
    chat_id: int,
    payload: ChatRoomUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> ChatRoomRead:
    return serialize_chat(chats.update_chat(db, ctx, chat_id, payload.name))


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_chat(
    chat_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> None:
    """Deactivate a chat so it no longer shows up in listings."""

    chats.deactivate_chat(db, ctx, chat_id)


@router.get("/{chat_id}/messages", response_model=list[MessageRead])
async def read_messages(
    chat_id: int,
    limit: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[MessageRead]:
    """Return recent messages of a chat in chronological order."""

    return [serialize_message(message) for message in chats.list_messages(db, ctx, chat_id, limit)]


@router.post(
    "/{chat_id}/messages",
    response_model=MessageDeliveryRead,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    chat_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> MessageDeliveryRead:
    """Send a message and push it to every live subscriber of the chat."""

    delivery = chats.send_message(
        db,
        ctx,
        chat_id,
        payload.text,
        message_type=payload.type,
        reply_to_id=payload.reply_to_id,
    )
    message = serialize_message(delivery.message)
    chat = chats.get_chat(db, ctx, chat_id)

    await event_hub.publish(
        [chat_topic(chat_id)],
        {"type": "message", "message": message.model_dump(mode="json")},
    )
    await event_hub.publish(
        [user_topic(user_id) for user_id in chat.participant_ids],
        {"type": "chat_updated", "chat": serialize_chat(chat).model_dump(mode="json")},
    )
    await publish_fan_out(delivery.notifications)

    return MessageDeliveryRead(
        message=message,
        notifications=FanOutRead(
            delivered=delivery.notifications.delivered_user_ids,
            failed=delivery.notifications.failed,
        ),
    )


@router.post("/{chat_id}/messages/{message_id}/read", response_model=MessageRead)
async def mark_read(
    chat_id: int,
    message_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> MessageRead:
    return serialize_message(chats.mark_message_read(db, ctx, chat_id, message_id))
