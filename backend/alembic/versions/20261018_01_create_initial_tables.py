"""create initial tables

Revision ID: 20261018_01
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


CHAT_ROOM_TYPE = sa.Enum("direct", "group", name="chat_room_type")
MESSAGE_TYPE_VALUES = ("text", "image", "file", "system")
CHAT_MESSAGE_TYPE = sa.Enum(*MESSAGE_TYPE_VALUES, name="chat_message_type")
CHAT_LAST_MESSAGE_TYPE = sa.Enum(*MESSAGE_TYPE_VALUES, name="chat_last_message_type")
FRIEND_REQUEST_STATUS = sa.Enum("pending", "accepted", "rejected", name="friend_request_status")
FRIENDSHIP_STATUS = sa.Enum("accepted", "blocked", name="friendship_status")
NOTIFICATION_TYPE = sa.Enum(
    "message", "friend_request", "friend_accepted", "system", name="notification_type"
)


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        )
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=False),
        sa.Column("status_message", sa.String(length=255), nullable=True),
        sa.Column("avatar_path", sa.String(length=512), nullable=True),
        sa.Column("avatar_content_type", sa.String(length=128), nullable=True),
        sa.Column("avatar_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "notification_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("push_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("message_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "friend_request_notifications", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("type", CHAT_ROOM_TYPE, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column(
            "created_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("direct_key", sa.String(length=64), nullable=True),
        sa.Column("last_message_id", sa.Integer(), nullable=True),
        sa.Column("last_message_text", sa.String(length=64), nullable=True),
        sa.Column("last_message_sender_id", sa.Integer(), nullable=True),
        sa.Column("last_message_type", CHAT_LAST_MESSAGE_TYPE, nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("direct_key", name="uq_chat_rooms_direct_key"),
    )
    op.create_index("ix_chat_rooms_updated_at", "chat_rooms", ["updated_at"])

    op.create_table(
        "chat_room_participants",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "chat_room_id",
            sa.Integer(),
            sa.ForeignKey("chat_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("chat_room_id", "user_id", name="uq_chat_room_participant"),
    )
    op.create_index(
        "ix_chat_room_participants_user_id", "chat_room_participants", ["user_id"]
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "chat_room_id",
            sa.Integer(),
            sa.ForeignKey("chat_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sender_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("type", CHAT_MESSAGE_TYPE, nullable=False, server_default="text"),
        sa.Column(
            "reply_to_id",
            sa.Integer(),
            sa.ForeignKey("chat_messages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_chat_messages_room_created", "chat_messages", ["chat_room_id", "created_at"]
    )

    op.create_table(
        "chat_message_reads",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "message_id",
            sa.Integer(),
            sa.ForeignKey("chat_messages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "read_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("message_id", "user_id", name="uq_chat_message_read"),
    )

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "from_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "to_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.String(length=255), nullable=True),
        sa.Column("status", FRIEND_REQUEST_STATUS, nullable=False, server_default="pending"),
        sa.Column("pending_key", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("pending_key", name="uq_friend_requests_pending_key"),
    )
    op.create_index(
        "ix_friend_requests_to_status", "friend_requests", ["to_user_id", "status"]
    )

    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "user1_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user2_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", FRIENDSHIP_STATUS, nullable=False, server_default="accepted"),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("friend_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "blocked_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("blocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_friendship_pair"),
    )
    op.create_index("ix_friendships_user1_id", "friendships", ["user1_id"])
    op.create_index("ix_friendships_user2_id", "friendships", ["user2_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", NOTIFICATION_TYPE, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_friendships_user2_id", table_name="friendships")
    op.drop_index("ix_friendships_user1_id", table_name="friendships")
    op.drop_table("friendships")
    op.drop_index("ix_friend_requests_to_status", table_name="friend_requests")
    op.drop_table("friend_requests")
    op.drop_table("chat_message_reads")
    op.drop_index("ix_chat_messages_room_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_chat_room_participants_user_id", table_name="chat_room_participants")
    op.drop_table("chat_room_participants")
    op.drop_index("ix_chat_rooms_updated_at", table_name="chat_rooms")
    op.drop_table("chat_rooms")
    op.drop_table("notification_settings")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        NOTIFICATION_TYPE,
        FRIENDSHIP_STATUS,
        FRIEND_REQUEST_STATUS,
        CHAT_LAST_MESSAGE_TYPE,
        CHAT_MESSAGE_TYPE,
        CHAT_ROOM_TYPE,
    ):
        enum.drop(bind, checkfirst=True)
