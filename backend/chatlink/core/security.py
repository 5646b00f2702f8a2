"""Password hashing and bearer token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from fastapi import HTTPException, status
from passlib.context import CryptContext

from chatlink.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TOKEN_TYPE = "access"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def create_access_token(subject: int | str, expires_delta: timedelta | None = None) -> str:
    """Sign a token whose ``sub`` claim is the user id.

    Tokens are stateless: logging out does not revoke them, they simply
    expire.
    """

    issued_at = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": str(subject),
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + (expires_delta if expires_delta is not None else access_token_lifetime()),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """Validate signature, expiry and token type, returning the claims."""

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Could not validate credentials") from exc
    if payload.get("type") != TOKEN_TYPE:
        raise _unauthorized("Could not validate credentials")
    return payload
