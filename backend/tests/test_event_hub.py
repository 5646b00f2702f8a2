from __future__ import annotations

from typing import Any

import pytest
from fastapi.websockets import WebSocketState

from chatlink.services.events import ChatEventHub, chat_topic, user_topic


class DummyWebSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def test_topic_names():
    assert chat_topic(5) == "chat:5"
    assert user_topic(7) == "user:7"


@pytest.mark.anyio("asyncio")
async def test_publish_reaches_each_socket_once() -> None:
    hub = ChatEventHub()
    shared = DummyWebSocket()
    other = DummyWebSocket()
    await hub.connect(chat_topic(1), shared)
    await hub.connect(user_topic(2), shared)
    await hub.connect(user_topic(3), other)

    delivered = await hub.publish([chat_topic(1), user_topic(2), user_topic(3)], {"type": "message"})

    assert delivered == 2
    assert shared.sent == [{"type": "message"}]
    assert other.sent == [{"type": "message"}]


@pytest.mark.anyio("asyncio")
async def test_publish_skips_closed_and_failing_sockets() -> None:
    hub = ChatEventHub()
    closed = DummyWebSocket()
    closed.application_state = WebSocketState.DISCONNECTED
    failing = DummyWebSocket(fail=True)
    healthy = DummyWebSocket()
    for socket in (closed, failing, healthy):
        await hub.connect(chat_topic(9), socket)

    delivered = await hub.publish([chat_topic(9)], {"type": "ping"})

    assert delivered == 1
    assert healthy.sent == [{"type": "ping"}]
    assert closed.sent == []


@pytest.mark.anyio("asyncio")
async def test_disconnect_drops_empty_topics() -> None:
    hub = ChatEventHub()
    socket = DummyWebSocket()
    await hub.connect(user_topic(1), socket)
    assert hub.subscriber_count(user_topic(1)) == 1

    await hub.disconnect(user_topic(1), socket)
    await hub.disconnect(user_topic(1), socket)

    assert hub.subscriber_count(user_topic(1)) == 0
    assert await hub.publish([user_topic(1)], {"type": "noop"}) == 0
    assert await hub.publish([], {"type": "noop"}) == 0
