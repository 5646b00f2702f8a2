"""Notification ledger: per-user records, read state and settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatlink.core.errors import NotFound
from chatlink.core.session import SessionContext
from chatlink.models import Notification, NotificationSettings, NotificationType

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 50


def truncate(text: str, limit: int = SUMMARY_LENGTH, ellipsis: str = "") -> str:
    """Cut ``text`` to ``limit`` characters, appending ``ellipsis`` if it was cut."""

    if len(text) <= limit:
        return text
    return f"{text[:limit]}{ellipsis}"


@dataclass(slots=True)
class NotificationDraft:
    """Content of a notification before it is addressed to a recipient."""

    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class FanOutResult:
    """Partial-success report for a batch of notification writes."""

    delivered: list[Notification] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def delivered_user_ids(self) -> list[int]:
        return [record.user_id for record in self.delivered]

    @property
    def ok(self) -> bool:
        return not self.failed


def message_draft(
    *, chat_id: int, message_id: int, sender_id: int, sender_name: str, text: str
) -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.MESSAGE,
        title=f"New message from {sender_name}",
        body=truncate(text, ellipsis="..."),
        data={
            "type": "chat",
            "chat_id": chat_id,
            "message_id": message_id,
            "sender_id": sender_id,
        },
    )


def friend_request_draft(
    *, request_id: int, from_user_id: int, sender_name: str, message: str | None
) -> NotificationDraft:
    body = f"{sender_name}: {message}" if message else f"{sender_name} sent you a friend request"
    return NotificationDraft(
        type=NotificationType.FRIEND_REQUEST,
        title="New friend request",
        body=body,
        data={
            "type": "friend_request",
            "request_id": request_id,
            "from_user_id": from_user_id,
            "message": message,
        },
    )


def friend_accepted_draft(*, request_id: int, accepter_id: int, accepter_name: str) -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.FRIEND_ACCEPTED,
        title="Friend request accepted",
        body=f"{accepter_name} accepted your friend request",
        data={
            "type": "friend_accepted",
            "request_id": request_id,
            "accepter_id": accepter_id,
        },
    )


def _write_notification(db: Session, user_id: int, draft: NotificationDraft) -> Notification:
    record = Notification(
        user_id=user_id,
        type=draft.type,
        title=draft.title,
        body=draft.body,
        data=dict(draft.data),
        is_read=False,
    )
    db.add(record)
    db.commit()
    return record


def fan_out(db: Session, recipients: Iterable[int], draft: NotificationDraft) -> FanOutResult:
    """Write one notification per recipient.

    Writes are committed independently and never raise: a failed write is
    rolled back, logged and listed in ``FanOutResult.failed``. Notification
    settings are not consulted here.
    """

    result = FanOutResult()
    for user_id in dict.fromkeys(recipients):
        try:
            record = _write_notification(db, user_id, draft)
        except SQLAlchemyError:
            db.rollback()
            logger.warning(
                "Failed to store %s notification for user %s",
                draft.type.value,
                user_id,
                exc_info=True,
            )
            result.failed.append(user_id)
            continue
        result.delivered.append(record)
    return result


def list_notifications(
    db: Session, user_id: int, *, unread_only: bool = False, limit: int | None = None
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars())


def unread_count(db: Session, user_id: int) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    return db.execute(stmt).scalar_one()


def _require_notification(db: Session, ctx: SessionContext, notification_id: int) -> Notification:
    record = db.get(Notification, notification_id)
    if record is None or record.user_id != ctx.user_id:
        raise NotFound("Notification not found")
    return record


def mark_as_read(db: Session, ctx: SessionContext, notification_id: int) -> Notification:
    record = _require_notification(db, ctx, notification_id)
    if not record.is_read:
        record.is_read = True
        record.read_at = datetime.now(timezone.utc)
        db.add(record)
        db.commit()
        db.refresh(record)
    return record


def mark_all_as_read(db: Session, ctx: SessionContext) -> int:
    """Flip every unread notification of the caller and return how many changed."""

    stmt = (
        update(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    updated = db.execute(stmt).rowcount
    db.commit()
    logger.info("Marked %s notification(s) as read for user %s", updated, ctx.user_id)
    return updated


def delete_notification(db: Session, ctx: SessionContext, notification_id: int) -> None:
    record = _require_notification(db, ctx, notification_id)
    db.delete(record)
    db.commit()


def get_notification_settings(db: Session, user_id: int) -> NotificationSettings:
    """Return stored settings, or an unsaved all-enabled instance when none exist."""

    stmt = select(NotificationSettings).where(NotificationSettings.user_id == user_id)
    settings = db.execute(stmt).scalar_one_or_none()
    if settings is None:
        settings = NotificationSettings(
            user_id=user_id,
            push_notifications=True,
            message_notifications=True,
            friend_request_notifications=True,
        )
    return settings


def update_notification_settings(
    db: Session,
    ctx: SessionContext,
    *,
    push_notifications: bool | None = None,
    message_notifications: bool | None = None,
    friend_request_notifications: bool | None = None,
) -> NotificationSettings:
    settings = get_notification_settings(db, ctx.user_id)
    if push_notifications is not None:
        settings.push_notifications = push_notifications
    if message_notifications is not None:
        settings.message_notifications = message_notifications
    if friend_request_notifications is not None:
        settings.friend_request_notifications = friend_request_notifications
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings
