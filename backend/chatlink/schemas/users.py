"""Schemas related to user profiles."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, constr


class PublicUser(BaseModel):
    """Minimal public-facing user information."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    avatar_url: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None


class UserProfileRead(PublicUser):
    """Detailed representation of the current user profile."""

    email: str
    status_message: str | None = None
    created_at: datetime
    updated_at: datetime


class UserProfileUpdate(BaseModel):
    """Payload for updating profile fields."""

    display_name: constr(strip_whitespace=True, min_length=1, max_length=128) | None = Field(
        default=None,
        description="New display name",
    )
    status_message: constr(strip_whitespace=True, max_length=255) | None = Field(
        default=None,
        description="Short status text. Pass an empty string to clear it.",
    )


class UserSearchResult(PublicUser):
    """User search hit annotated with the caller's relationship to that user."""

    email: str
    friendship_status: Literal["none", "pending", "accepted", "blocked"] = "none"
