"""Unit tests for profile lookups, presence and search."""

from __future__ import annotations

import pytest

from chatlink.core.errors import NotFound
from chatlink.core.storage import StoredFile
from chatlink.services import friendships, profiles


def test_create_profile_hashes_password(db_session):
    user = profiles.create_profile(
        db_session, email="alice@example.com", password="wonderland", display_name="Alice"
    )

    assert user.id is not None
    assert user.hashed_password != "wonderland"
    assert user.is_online is False
    assert profiles.get_profile_by_email(db_session, "alice@example.com").id == user.id
    assert profiles.get_profile_by_email(db_session, "nobody@example.com") is None


def test_get_profile_unknown_user(db_session):
    with pytest.raises(NotFound):
        profiles.get_profile(db_session, 321)


def test_update_profile_only_touches_given_fields(db_session, make_user, ctx_for):
    user = make_user("Alice")

    updated = profiles.update_profile(db_session, ctx_for(user), status_message="On holiday")
    assert updated.display_name == "Alice"
    assert updated.status_message == "On holiday"

    cleared = profiles.update_profile(db_session, ctx_for(user), display_name="Al", status_message="")
    assert cleared.display_name == "Al"
    assert cleared.status_message is None


def test_presence_stamps_last_seen(db_session, make_user):
    user = make_user()

    online = profiles.set_presence(db_session, user.id, True)
    assert online.is_online is True
    first_seen = online.last_seen
    assert first_seen is not None

    offline = profiles.set_presence(db_session, user.id, False)
    assert offline.is_online is False
    assert offline.last_seen >= first_seen


def test_set_avatar_records_path_and_url(db_session, make_user, ctx_for, tmp_path):
    user = make_user()
    stored = StoredFile(
        file_name="me.png",
        content_type="image/png",
        file_size=4,
        absolute_path=tmp_path / "avatar.png",
        relative_path=f"avatars/user_{user.id}/avatar.png",
    )

    updated = profiles.set_avatar(db_session, ctx_for(user), stored)

    assert updated.avatar_path == stored.relative_path
    assert updated.avatar_content_type == "image/png"
    assert updated.avatar_url.startswith(f"/api/profile/avatar/{user.id}?v=")


def test_search_excludes_caller_and_reports_relationship(db_session, make_user, ctx_for):
    alice = make_user("Alice", email="alice@example.com")
    bob = make_user("Bob Stone", email="bob@example.com")
    bobby = make_user("Bobby", email="bobby@example.com")
    robert = make_user("Robert", email="rob.bob@example.com")

    request = friendships.send_request(db_session, ctx_for(bob), alice.id).request
    friendships.accept_request(db_session, ctx_for(alice), request.id)
    friendships.send_request(db_session, ctx_for(alice), bobby.id)

    results = profiles.search_users(db_session, ctx_for(alice), "BOB")

    assert [(user.id, status) for user, status in results] == [
        (bob.id, "accepted"),
        (bobby.id, "pending"),
        (robert.id, "none"),
    ]
    assert profiles.search_users(db_session, ctx_for(alice), "   ") == []
    assert all(user.id != alice.id for user, _ in profiles.search_users(db_session, ctx_for(alice), "example"))


def test_search_treats_wildcards_literally(db_session, make_user, ctx_for):
    alice = make_user("Alice", email="alice@example.com")
    make_user("Bob", email="bob@example.com")
    underscored = make_user("snake_case", email="snake@example.com")

    results = profiles.search_users(db_session, ctx_for(alice), "_")
    assert [user.id for user, _ in results] == [underscored.id]
    assert profiles.search_users(db_session, ctx_for(alice), "%") == []
