"""Application service helpers."""

from .events import chat_topic, event_hub, user_topic

__all__ = [
    "event_hub",
    "chat_topic",
    "user_topic",
]
