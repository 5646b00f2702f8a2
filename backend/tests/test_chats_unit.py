"""Unit tests for chat rooms, messages and notification fan-out."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from chatlink.core.errors import InvalidRequest, NotFound, PermissionDenied
from chatlink.models import ChatMessage, ChatRoom, ChatRoomType, MessageType, Notification
from chatlink.services import chats
from chatlink.services import notifications as notifications_service


@pytest.fixture()
def alice(make_user):
    return make_user("Alice")


@pytest.fixture()
def bob(make_user):
    return make_user("Bob")


@pytest.fixture()
def carol(make_user):
    return make_user("Carol")


def test_direct_chat_is_reused_from_either_side(db_session, alice, bob, ctx_for):
    first = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    second = chats.get_or_create_direct_chat(db_session, ctx_for(bob), alice.id)

    assert first.id == second.id
    assert first.type == ChatRoomType.DIRECT
    assert sorted(first.participant_ids) == sorted([alice.id, bob.id])
    assert len(db_session.execute(select(ChatRoom)).scalars().all()) == 1


def test_direct_chat_requires_distinct_existing_user(db_session, alice, ctx_for):
    with pytest.raises(InvalidRequest):
        chats.get_or_create_direct_chat(db_session, ctx_for(alice), alice.id)
    with pytest.raises(NotFound):
        chats.get_or_create_direct_chat(db_session, ctx_for(alice), 777)


def test_concurrent_direct_chat_creation_reuses_winner(db_session, alice, bob, ctx_for, monkeypatch):
    winner = chats.get_or_create_direct_chat(db_session, ctx_for(bob), alice.id)

    # Simulate losing the race: the lookup misses, the insert hits the unique key.
    lookups = iter([None])
    original_find = chats._find_direct_chat

    def racing_find(db, key):
        try:
            return next(lookups)
        except StopIteration:
            return original_find(db, key)

    monkeypatch.setattr(chats, "_find_direct_chat", racing_find)

    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)

    assert chat.id == winner.id
    assert len(db_session.execute(select(ChatRoom)).scalars().all()) == 1


def test_deactivated_direct_chat_is_replaced(db_session, alice, bob, ctx_for):
    first = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    chats.deactivate_chat(db_session, ctx_for(alice), first.id)

    second = chats.get_or_create_direct_chat(db_session, ctx_for(bob), alice.id)

    assert second.id != first.id
    assert [chat.id for chat in chats.list_user_chats(db_session, alice.id)] == [second.id]


def test_group_chat_includes_creator(db_session, alice, bob, carol, ctx_for):
    chat = chats.create_group_chat(db_session, ctx_for(alice), [bob.id, carol.id], "Trip")

    assert chat.type == ChatRoomType.GROUP
    assert chat.name == "Trip"
    assert sorted(chat.participant_ids) == sorted([alice.id, bob.id, carol.id])


def test_group_chat_validation(db_session, alice, ctx_for):
    with pytest.raises(InvalidRequest):
        chats.create_group_chat(db_session, ctx_for(alice), [alice.id], "Solo")
    with pytest.raises(NotFound):
        chats.create_group_chat(db_session, ctx_for(alice), [404], "Ghosts")


def test_only_group_chats_can_be_renamed(db_session, alice, bob, ctx_for):
    direct = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    group = chats.create_group_chat(db_session, ctx_for(alice), [bob.id], "Old")

    with pytest.raises(InvalidRequest):
        chats.update_chat(db_session, ctx_for(alice), direct.id, "Nope")
    assert chats.update_chat(db_session, ctx_for(bob), group.id, "New").name == "New"


def test_non_participant_cannot_read_or_post(db_session, alice, bob, carol, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)

    with pytest.raises(PermissionDenied):
        chats.get_chat(db_session, ctx_for(carol), chat.id)
    with pytest.raises(PermissionDenied):
        chats.send_message(db_session, ctx_for(carol), chat.id, "let me in")
    with pytest.raises(PermissionDenied):
        chats.list_messages(db_session, ctx_for(carol), chat.id)


def test_send_message_updates_summary_and_notifies_others(db_session, alice, bob, carol, ctx_for):
    chat = chats.create_group_chat(db_session, ctx_for(alice), [bob.id, carol.id], "Team")
    text = "x" * 80

    delivery = chats.send_message(db_session, ctx_for(alice), chat.id, text)

    assert delivery.message.sender_id == alice.id
    assert delivery.message.text == text
    assert delivery.notifications.ok
    assert sorted(delivery.notifications.delivered_user_ids) == sorted([bob.id, carol.id])

    refreshed = chats.get_chat(db_session, ctx_for(alice), chat.id)
    assert refreshed.last_message_id == delivery.message.id
    assert refreshed.last_message_text == "x" * notifications_service.SUMMARY_LENGTH
    assert refreshed.last_message_sender_id == alice.id
    assert refreshed.last_message_type == MessageType.TEXT

    records = db_session.execute(select(Notification)).scalars().all()
    assert {record.user_id for record in records} == {bob.id, carol.id}
    for record in records:
        assert record.title == "New message from Alice"
        assert record.body == "x" * notifications_service.SUMMARY_LENGTH + "..."
        assert record.data == {
            "type": "chat",
            "chat_id": chat.id,
            "message_id": delivery.message.id,
            "sender_id": alice.id,
        }


def test_short_message_sets_summary_and_unread_notification(db_session, alice, bob, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)

    chats.send_message(db_session, ctx_for(alice), chat.id, "hi")

    assert chats.get_chat(db_session, ctx_for(bob), chat.id).last_message_text == "hi"
    record = db_session.execute(select(Notification)).scalar_one()
    assert record.user_id == bob.id
    assert record.body == "hi"
    assert record.is_read is False


def test_failed_notification_does_not_undo_message(db_session, alice, bob, carol, ctx_for, monkeypatch):
    chat = chats.create_group_chat(db_session, ctx_for(alice), [bob.id, carol.id], "Team")
    original_write = notifications_service._write_notification

    def flaky_write(db, user_id, draft):
        if user_id == bob.id:
            raise SQLAlchemyError("notifications table locked")
        return original_write(db, user_id, draft)

    monkeypatch.setattr(notifications_service, "_write_notification", flaky_write)

    delivery = chats.send_message(db_session, ctx_for(alice), chat.id, "ping")

    assert delivery.notifications.failed == [bob.id]
    assert delivery.notifications.delivered_user_ids == [carol.id]
    assert not delivery.notifications.ok

    db_session.expire_all()
    stored = db_session.execute(select(ChatMessage)).scalar_one()
    assert stored.text == "ping"
    assert db_session.get(ChatRoom, chat.id).last_message_id == stored.id
    assert [record.user_id for record in db_session.execute(select(Notification)).scalars()] == [carol.id]


def test_message_validation(db_session, alice, bob, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)

    with pytest.raises(InvalidRequest):
        chats.send_message(db_session, ctx_for(alice), chat.id, "   ")
    with pytest.raises(InvalidRequest):
        chats.send_message(db_session, ctx_for(alice), chat.id, "y" * 5000)
    with pytest.raises(NotFound):
        chats.send_message(db_session, ctx_for(alice), 999, "hello")
    with pytest.raises(NotFound):
        chats.send_message(db_session, ctx_for(alice), chat.id, "re", reply_to_id=12345)


def test_inactive_chat_rejects_messages(db_session, alice, bob, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    chats.deactivate_chat(db_session, ctx_for(bob), chat.id)

    with pytest.raises(NotFound):
        chats.send_message(db_session, ctx_for(alice), chat.id, "anyone?")


def test_reply_must_stay_in_same_chat(db_session, alice, bob, carol, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    other = chats.get_or_create_direct_chat(db_session, ctx_for(alice), carol.id)
    foreign = chats.send_message(db_session, ctx_for(alice), other.id, "elsewhere").message
    parent = chats.send_message(db_session, ctx_for(bob), chat.id, "question?").message

    reply = chats.send_message(db_session, ctx_for(alice), chat.id, "answer", reply_to_id=parent.id)
    assert reply.message.reply_to_id == parent.id

    with pytest.raises(NotFound):
        chats.send_message(db_session, ctx_for(alice), chat.id, "wrong", reply_to_id=foreign.id)


def test_history_is_chronological_and_limited(db_session, alice, bob, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    for index in range(5):
        chats.send_message(db_session, ctx_for(alice), chat.id, f"message {index}")

    history = chats.list_messages(db_session, ctx_for(bob), chat.id, limit=3)

    assert [message.text for message in history] == ["message 2", "message 3", "message 4"]


def test_mark_message_read_is_idempotent(db_session, alice, bob, ctx_for):
    chat = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    message = chats.send_message(db_session, ctx_for(alice), chat.id, "read me").message

    first = chats.mark_message_read(db_session, ctx_for(bob), chat.id, message.id)
    second = chats.mark_message_read(db_session, ctx_for(bob), chat.id, message.id)

    assert first.read_by == [bob.id]
    assert second.read_by == [bob.id]
    with pytest.raises(NotFound):
        chats.mark_message_read(db_session, ctx_for(bob), chat.id, 9999)


def test_chat_list_orders_by_latest_activity(db_session, alice, bob, carol, ctx_for):
    with_bob = chats.get_or_create_direct_chat(db_session, ctx_for(alice), bob.id)
    with_carol = chats.get_or_create_direct_chat(db_session, ctx_for(alice), carol.id)

    assert [chat.id for chat in chats.list_user_chats(db_session, alice.id)] == [
        with_carol.id,
        with_bob.id,
    ]

    chats.send_message(db_session, ctx_for(bob), with_bob.id, "bump")

    assert [chat.id for chat in chats.list_user_chats(db_session, alice.id)] == [
        with_bob.id,
        with_carol.id,
    ]
