"""Schemas for authentication endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

from chatlink.config import get_settings

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value


class UserCreate(BaseModel):
    """Payload for creating a new user via registration."""

    email: constr(strip_whitespace=True, min_length=3, max_length=255) = Field(
        ..., description="Email address used to sign in"
    )
    password: constr(max_length=128) = Field(
        ..., description="Plain text password that will be hashed before storing"
    )
    display_name: constr(strip_whitespace=True, min_length=1, max_length=128) = Field(
        ..., description="Name shown to other users"
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, value: str) -> str:
        minimum = get_settings().password_min_length
        if len(value) < minimum:
            raise ValueError(f"Password must be at least {minimum} characters long")
        return value


class UserRead(BaseModel):
    """Representation of a registered user returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: str
    avatar_url: str | None = None
    created_at: datetime


class LoginRequest(BaseModel):
    """Payload for user login."""

    email: constr(strip_whitespace=True, min_length=3, max_length=255) = Field(..., description="User email")
    password: constr(min_length=1, max_length=128) = Field(..., description="User password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)


class Token(BaseModel):
    """Access token returned after successful authentication."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type, always 'bearer'")
    expires_in: int | None = Field(
        default=None,
        description="Number of seconds until the access token expires",
    )
