"""Lightweight event hub for real-time chat and notification updates."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, Set

from fastapi.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


def chat_topic(chat_id: int) -> str:
    return f"chat:{chat_id}"


def user_topic(user_id: int) -> str:
    return f"user:{user_id}"


class ChatEventHub:
    """Tracks active WebSocket subscriptions per topic."""

    def __init__(self) -> None:
        self._connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, topic: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections[topic].add(websocket)

    async def disconnect(self, topic: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(topic)
            if not sockets:
                return
            sockets.discard(websocket)
            if not sockets:
                self._connections.pop(topic, None)

    def subscriber_count(self, topic: str) -> int:
        return len(self._connections.get(topic, ()))

    async def publish(self, topics: Iterable[str], payload: dict[str, Any]) -> int:
        """Send ``payload`` to every socket subscribed to any of ``topics``.

        Each socket receives the payload at most once. Returns the number of
        sockets that accepted it.
        """

        unique_topics = set(topics)
        if not unique_topics:
            return 0
        async with self._lock:
            targets: set[WebSocket] = set()
            for topic in unique_topics:
                targets.update(self._connections.get(topic, set()))
        delivered = 0
        for socket in targets:
            if socket.application_state != WebSocketState.CONNECTED:
                continue
            try:
                await socket.send_json(payload)
            except RuntimeError:
                logger.debug("Dropping event for closed socket", exc_info=True)
                continue
            delivered += 1
        return delivered


event_hub = ChatEventHub()
"""Singleton hub shared by the HTTP and WebSocket routers."""
