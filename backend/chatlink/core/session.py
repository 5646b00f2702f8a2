"""Explicit per-request identity handed to service functions."""

from __future__ import annotations

from dataclasses import dataclass

from chatlink.models import User


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identity of the authenticated caller."""

    user_id: int
    email: str
    display_name: str

    @classmethod
    def for_user(cls, user: User) -> "SessionContext":
        return cls(user_id=user.id, email=user.email, display_name=user.display_name)
