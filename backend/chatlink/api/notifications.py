"""Notification ledger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from chatlink.api.deps import get_session_context
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.models import Notification
from chatlink.schemas import (
    MarkAllReadResult,
    NotificationRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    UnreadCount,
)
from chatlink.services import event_hub, notifications, user_topic
from chatlink.services.notifications import FanOutResult

router = APIRouter(prefix="/notifications", tags=["notifications"])


def serialize_notification(record: Notification) -> NotificationRead:
    return NotificationRead.model_validate(record, from_attributes=True)


async def publish_fan_out(result: FanOutResult) -> None:
    """Push freshly written notifications to their recipients' sockets."""

    for record in result.delivered:
        await event_hub.publish(
            [user_topic(record.user_id)],
            {
                "type": "notification",
                "notification": serialize_notification(record).model_dump(mode="json"),
            },
        )


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[NotificationRead]:
    records = notifications.list_notifications(db, ctx.user_id, unread_only=unread_only, limit=limit)
    return [serialize_notification(record) for record in records]


@router.get("/unread-count", response_model=UnreadCount)
async def read_unread_count(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> UnreadCount:
    return UnreadCount(unread=notifications.unread_count(db, ctx.user_id))


@router.get("/settings", response_model=NotificationSettingsRead)
async def read_settings(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> NotificationSettingsRead:
    settings = notifications.get_notification_settings(db, ctx.user_id)
    return NotificationSettingsRead.model_validate(settings, from_attributes=True)


@router.patch("/settings", response_model=NotificationSettingsRead)
async def update_settings(
    payload: NotificationSettingsUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> NotificationSettingsRead:
    settings = notifications.update_notification_settings(
        db,
        ctx,
        push_notifications=payload.push_notifications,
        message_notifications=payload.message_notifications,
        friend_request_notifications=payload.friend_request_notifications,
    )
    return NotificationSettingsRead.model_validate(settings, from_attributes=True)


@router.post("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> MarkAllReadResult:
    return MarkAllReadResult(updated=notifications.mark_all_as_read(db, ctx))


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> NotificationRead:
    return serialize_notification(notifications.mark_as_read(db, ctx, notification_id))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> None:
    notifications.delete_notification(db, ctx, notification_id)
