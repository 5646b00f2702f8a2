"""WebSocket endpoints for live chat and notification streams."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, status
from fastapi.exceptions import HTTPException
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from chatlink.api.chats import serialize_message
from chatlink.api.deps import get_user_from_token
from chatlink.api.notifications import serialize_notification
from chatlink.config import get_settings
from chatlink.core.errors import ChatLinkError, NotFound
from chatlink.core.session import SessionContext
from chatlink.database import get_db_session
from chatlink.services import chat_topic, chats, event_hub, notifications, profiles, user_topic

router = APIRouter(prefix="/ws", tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

PING_FRAME: Dict[str, Any] = {"type": "ping"}


async def iter_client_frames(
    websocket: WebSocket,
    *,
    idle_timeout: float | None,
    ping_interval: float | None,
) -> AsyncIterator[str]:
    """Yield text frames until the client leaves, pinging it while it stays silent.

    A ping goes out each time a receive idles for ``idle_timeout`` seconds, but
    no more often than every ``ping_interval`` seconds.
    """

    last_ping: float | None = None
    while True:
        try:
            if idle_timeout:
                frame = await asyncio.wait_for(websocket.receive_text(), timeout=idle_timeout)
            else:
                frame = await websocket.receive_text()
        except asyncio.TimeoutError:
            now = time.monotonic()
            if last_ping is not None and ping_interval and now - last_ping < ping_interval:
                continue
            if not await safe_send_json(websocket, PING_FRAME):
                return
            last_ping = now
            continue
        except (RuntimeError, WebSocketDisconnect):
            return
        last_ping = None
        yield frame


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Send JSON unless the socket has gone away. Returns True on success."""

    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.debug("Failed to send websocket message: %s", exc)
        return False


async def _resolve_context(websocket: WebSocket) -> SessionContext | None:
    token = websocket.query_params.get("token")
    if not token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return None

    try:
        with get_db_session() as db:
            return SessionContext.for_user(get_user_from_token(token, db))
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return None


def _is_ping(raw_message: str) -> bool:
    if raw_message.strip().lower() == "ping":
        return True
    try:
        payload = json.loads(raw_message)
    except json.JSONDecodeError:
        return False
    return isinstance(payload, dict) and payload.get("type") == "ping"


async def _serve(websocket: WebSocket) -> None:
    async for frame in iter_client_frames(
        websocket,
        idle_timeout=settings.websocket_keepalive_timeout_seconds,
        ping_interval=settings.websocket_keepalive_ping_interval_seconds,
    ):
        if _is_ping(frame):
            await safe_send_json(websocket, {"type": "pong"})


@router.websocket("/chats/{chat_id}")
async def websocket_chat(websocket: WebSocket, chat_id: int) -> None:
    """Stream new messages of one chat to a participant."""

    ctx = await _resolve_context(websocket)
    if ctx is None:
        return

    try:
        with get_db_session() as db:
            if not chats.get_chat(db, ctx, chat_id).is_active:
                raise NotFound("Chat room not found")
            history = [
                serialize_message(message).model_dump(mode="json")
                for message in chats.list_messages(db, ctx, chat_id)
            ]
    except ChatLinkError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return

    topic = chat_topic(chat_id)
    await websocket.accept()
    await event_hub.connect(topic, websocket)
    try:
        await safe_send_json(websocket, {"type": "snapshot", "chat_id": chat_id, "messages": history})
        await _serve(websocket)
    finally:
        await event_hub.disconnect(topic, websocket)


@router.websocket("/notifications")
async def websocket_notifications(websocket: WebSocket) -> None:
    """Stream notifications and chat updates addressed to the caller.

    The socket doubles as the presence signal: the user is online while it is open.
    """

    ctx = await _resolve_context(websocket)
    if ctx is None:
        return

    topic = user_topic(ctx.user_id)
    await websocket.accept()
    await event_hub.connect(topic, websocket)
    try:
        with get_db_session() as db:
            profiles.set_presence(db, ctx.user_id, True)
            unread = [
                serialize_notification(record).model_dump(mode="json")
                for record in notifications.list_notifications(db, ctx.user_id, unread_only=True, limit=50)
            ]
        await safe_send_json(websocket, {"type": "snapshot", "notifications": unread})
        await _serve(websocket)
    finally:
        await event_hub.disconnect(topic, websocket)
        # Another device may still hold a socket for this user.
        if event_hub.subscriber_count(topic) == 0:
            with get_db_session() as db:
                profiles.set_presence(db, ctx.user_id, False)
