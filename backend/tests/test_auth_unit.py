"""Unit tests for authentication helpers and endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from chatlink.api.auth import login_user, register_user
from chatlink.api.deps import get_user_from_token
from chatlink.config import get_settings
from chatlink.core.security import create_access_token, decode_access_token, get_password_hash
from chatlink.models import User
from chatlink.schemas import LoginRequest, UserCreate


@pytest.fixture()
def user(db_session):
    db_user = User(
        email="tester@example.com",
        hashed_password=get_password_hash("supersecret"),
        display_name="Tester",
    )
    db_session.add(db_user)
    db_session.commit()
    return db_user


def test_login_user_returns_token_and_marks_online(db_session, user):
    """Successful login should return a bearer token."""

    credentials = LoginRequest(email="Tester@Example.com ", password="supersecret")
    token = login_user(credentials, db_session)

    assert token.token_type == "bearer"
    assert isinstance(token.access_token, str) and token.access_token
    assert token.expires_in == get_settings().access_token_expire_minutes * 60
    db_session.refresh(user)
    assert user.is_online is True


def test_login_user_rejects_invalid_credentials(db_session, user):
    """Invalid credentials must raise an HTTP 401 error."""

    for email, password in (("ghost@example.com", "doesnotmatter"), ("tester@example.com", "wrong")):
        with pytest.raises(HTTPException) as exc:
            login_user(LoginRequest(email=email, password=password), db_session)
        assert exc.value.status_code == 401
        assert exc.value.detail == "Incorrect email or password"


def test_register_rejects_duplicate_email(db_session, user):
    payload = UserCreate(email="tester@example.com", password="another", display_name="Copy")

    with pytest.raises(HTTPException) as exc:
        register_user(payload, db_session)

    assert exc.value.status_code == 400


def test_user_create_validates_email_and_password():
    with pytest.raises(ValidationError):
        UserCreate(email="not-an-email", password="longenough", display_name="X")
    with pytest.raises(ValidationError):
        UserCreate(email="a@example.com", password="123", display_name="X")


def test_get_user_from_token(db_session, user):
    """Tokens should resolve to existing users."""

    token = create_access_token(user.id)
    resolved = get_user_from_token(token, db_session)

    assert resolved.id == user.id
    assert decode_access_token(token)["sub"] == str(user.id)


@pytest.mark.parametrize(
    "token_factory",
    [
        lambda user_id: "garbage",
        lambda user_id: create_access_token(user_id, expires_delta=timedelta(seconds=-5)),
        lambda user_id: create_access_token(999999),
        lambda user_id: jwt.encode(
            {"type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            get_settings().jwt_secret_key,
            algorithm=get_settings().jwt_algorithm,
        ),
        lambda user_id: jwt.encode(
            {"sub": str(user_id), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            get_settings().jwt_secret_key,
            algorithm=get_settings().jwt_algorithm,
        ),
    ],
)
def test_get_user_from_token_rejects_bad_tokens(db_session, user, token_factory):
    with pytest.raises(HTTPException) as exc:
        get_user_from_token(token_factory(user.id), db_session)

    assert exc.value.status_code == 401
