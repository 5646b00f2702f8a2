"""Core utilities for the ChatLink backend."""

from .storage import resolve_path, store_user_avatar

__all__ = ["store_user_avatar", "resolve_path"]
