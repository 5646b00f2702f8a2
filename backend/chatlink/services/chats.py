"""Chat rooms, direct-chat deduplication and message fan-out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from chatlink.config import get_settings
from chatlink.core.errors import InvalidRequest, NotFound, PermissionDenied
from chatlink.core.session import SessionContext
from chatlink.models import (
    ChatMessage,
    ChatRoom,
    ChatRoomParticipant,
    ChatRoomType,
    MessageRead,
    MessageType,
    User,
    pair_key,
)
from chatlink.services import notifications
from chatlink.services.notifications import SUMMARY_LENGTH, FanOutResult

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(slots=True)
class MessageDelivery:
    """A stored message and the outcome of its best-effort notifications."""

    message: ChatMessage
    notifications: FanOutResult


def _chat_query():
    return select(ChatRoom).options(selectinload(ChatRoom.participants))


def _load_chat(db: Session, chat_id: int) -> ChatRoom:
    chat = db.execute(_chat_query().where(ChatRoom.id == chat_id)).scalar_one_or_none()
    if chat is None:
        raise NotFound("Chat room not found")
    return chat


def _require_participant(chat: ChatRoom, user_id: int) -> None:
    if not chat.has_user(user_id):
        raise PermissionDenied("Not a participant of this chat")


def _find_direct_chat(db: Session, key: str) -> ChatRoom | None:
    stmt = _chat_query().where(
        ChatRoom.type == ChatRoomType.DIRECT,
        ChatRoom.is_active.is_(True),
        ChatRoom.direct_key == key,
    )
    return db.execute(stmt).scalar_one_or_none()


def get_or_create_direct_chat(db: Session, ctx: SessionContext, other_id: int) -> ChatRoom:
    """Return the active direct chat between the caller and ``other_id``.

    Active direct rooms carry a unique pair key, so concurrent first contact
    cannot leave two rooms behind: the losing insert re-reads the winner.
    """

    if other_id == ctx.user_id:
        raise InvalidRequest("Cannot open a direct chat with yourself")
    if db.get(User, other_id) is None:
        raise NotFound("User not found")

    key = pair_key(ctx.user_id, other_id)
    chat = _find_direct_chat(db, key)
    if chat is not None:
        return chat

    chat = ChatRoom(
        type=ChatRoomType.DIRECT,
        created_by_id=ctx.user_id,
        is_active=True,
        direct_key=key,
    )
    chat.participants = [
        ChatRoomParticipant(user_id=ctx.user_id),
        ChatRoomParticipant(user_id=other_id),
    ]
    db.add(chat)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_direct_chat(db, key)
        if existing is None:
            raise
        logger.info("Direct chat for %s was created concurrently; reusing %s", key, existing.id)
        return existing
    logger.info("Created direct chat %s for pair %s", chat.id, key)
    return _load_chat(db, chat.id)


def create_group_chat(
    db: Session, ctx: SessionContext, participant_ids: list[int], name: str
) -> ChatRoom:
    members = sorted({*participant_ids, ctx.user_id})
    if len(members) < 2:
        raise InvalidRequest("A group chat needs at least one other participant")
    existing_ids = set(db.execute(select(User.id).where(User.id.in_(members))).scalars())
    if set(members) - existing_ids:
        raise NotFound("Some users were not found")

    chat = ChatRoom(
        type=ChatRoomType.GROUP,
        name=name,
        created_by_id=ctx.user_id,
        is_active=True,
    )
    chat.participants = [ChatRoomParticipant(user_id=user_id) for user_id in members]
    db.add(chat)
    db.commit()
    logger.info("Created group chat %s with %s participants", chat.id, len(members))
    return _load_chat(db, chat.id)


def list_user_chats(db: Session, user_id: int) -> list[ChatRoom]:
    """Active chats of ``user_id``, most recently updated first."""

    stmt = (
        _chat_query()
        .join(ChatRoomParticipant)
        .where(ChatRoomParticipant.user_id == user_id, ChatRoom.is_active.is_(True))
        .order_by(ChatRoom.updated_at.desc(), ChatRoom.id.desc())
    )
    return list(db.execute(stmt).scalars())


def get_chat(db: Session, ctx: SessionContext, chat_id: int) -> ChatRoom:
    chat = _load_chat(db, chat_id)
    _require_participant(chat, ctx.user_id)
    return chat


def update_chat(db: Session, ctx: SessionContext, chat_id: int, name: str) -> ChatRoom:
    chat = get_chat(db, ctx, chat_id)
    if chat.type != ChatRoomType.GROUP:
        raise InvalidRequest("Only group chats can be renamed")
    chat.name = name
    chat.updated_at = datetime.now(timezone.utc)
    db.add(chat)
    db.commit()
    return _load_chat(db, chat.id)


def deactivate_chat(db: Session, ctx: SessionContext, chat_id: int) -> ChatRoom:
    """Hide a chat from listings. Rows are kept; the direct pair key is released.

    Either side may close a direct chat. A group chat can only be closed by
    its creator.
    """

    chat = get_chat(db, ctx, chat_id)
    if chat.type == ChatRoomType.GROUP and chat.created_by_id != ctx.user_id:
        raise PermissionDenied("Only the creator can deactivate a group chat")
    if chat.is_active:
        chat.is_active = False
        chat.direct_key = None
        db.add(chat)
        db.commit()
        logger.info("Chat %s deactivated by %s", chat.id, ctx.user_id)
    return _load_chat(db, chat.id)


def send_message(
    db: Session,
    ctx: SessionContext,
    chat_id: int,
    text: str,
    message_type: MessageType = MessageType.TEXT,
    reply_to_id: int | None = None,
) -> MessageDelivery:
    """Store a message, refresh the room summary and notify the other participants.

    The message and summary are committed first; notification writes that
    fail afterwards are reported in the result and never undo the message.
    """

    chat = _load_chat(db, chat_id)
    if not chat.is_active:
        raise NotFound("Chat room not found")
    _require_participant(chat, ctx.user_id)

    content = text.strip()
    if not content:
        raise InvalidRequest("Message cannot be empty")
    if len(content) > settings.chat_message_max_length:
        raise InvalidRequest("Message is too long")
    if reply_to_id is not None:
        parent = db.get(ChatMessage, reply_to_id)
        if parent is None or parent.chat_room_id != chat.id:
            raise NotFound("Message to reply to was not found")

    now = datetime.now(timezone.utc)
    message = ChatMessage(
        chat_room_id=chat.id,
        sender_id=ctx.user_id,
        text=content,
        type=message_type,
        reply_to_id=reply_to_id,
        created_at=now,
    )
    recipients = [user_id for user_id in chat.participant_ids if user_id != ctx.user_id]
    try:
        db.add(message)
        db.flush()
        chat.last_message_id = message.id
        chat.last_message_text = notifications.truncate(content, SUMMARY_LENGTH)
        chat.last_message_sender_id = ctx.user_id
        chat.last_message_type = message_type
        chat.last_message_at = now
        chat.updated_at = now
        db.add(chat)
        db.commit()
    except Exception:
        db.rollback()
        logger.error("Failed to store message in chat %s", chat_id, exc_info=True)
        raise
    db.refresh(message)

    draft = notifications.message_draft(
        chat_id=chat_id,
        message_id=message.id,
        sender_id=ctx.user_id,
        sender_name=ctx.display_name,
        text=content,
    )
    result = notifications.fan_out(db, recipients, draft)
    if not result.ok:
        logger.warning(
            "Message %s delivered but %s notification(s) failed", message.id, len(result.failed)
        )
    return MessageDelivery(message=message, notifications=result)


def list_messages(
    db: Session, ctx: SessionContext, chat_id: int, limit: int | None = None
) -> list[ChatMessage]:
    """Return the newest ``limit`` messages of the chat, oldest first."""

    get_chat(db, ctx, chat_id)
    if limit is None:
        limit = settings.chat_history_default_limit
    limit = max(1, min(limit, settings.chat_history_max_limit))
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.chat_room_id == chat_id)
        .options(selectinload(ChatMessage.reads))
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
    )
    messages = list(db.execute(stmt).scalars())
    messages.reverse()
    return messages


def mark_message_read(db: Session, ctx: SessionContext, chat_id: int, message_id: int) -> ChatMessage:
    """Add the caller to the message's readers. Repeated calls are no-ops."""

    get_chat(db, ctx, chat_id)
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.id == message_id, ChatMessage.chat_room_id == chat_id)
        .options(selectinload(ChatMessage.reads))
    )
    message = db.execute(stmt).scalar_one_or_none()
    if message is None:
        raise NotFound("Message not found")
    if ctx.user_id in message.read_by:
        return message

    message.reads.append(MessageRead(user_id=ctx.user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
    db.refresh(message)
    return message
