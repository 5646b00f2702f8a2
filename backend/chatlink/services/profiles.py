"""Profile directory: lookups, edits, presence and search."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from chatlink.core.errors import NotFound
from chatlink.core.security import get_password_hash
from chatlink.core.session import SessionContext
from chatlink.core.storage import StoredFile
from chatlink.models import FriendRequest, FriendRequestStatus, Friendship, User

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_profile_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_profile(db: Session, *, email: str, password: str, display_name: str) -> User:
    """Create the profile for a newly registered identity."""

    user = User(
        email=email,
        display_name=display_name,
        hashed_password=get_password_hash(password),
        is_online=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def update_profile(
    db: Session,
    ctx: SessionContext,
    *,
    display_name: str | None = None,
    status_message: str | None = None,
) -> User:
    user = get_profile(db, ctx.user_id)
    dirty = False
    if display_name is not None:
        user.display_name = display_name
        dirty = True
    if status_message is not None:
        user.status_message = status_message or None
        dirty = True
    if dirty:
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def set_avatar(db: Session, ctx: SessionContext, stored: StoredFile) -> User:
    user = get_profile(db, ctx.user_id)
    user.avatar_path = stored.relative_path
    user.avatar_content_type = stored.content_type
    user.avatar_updated_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def set_presence(db: Session, user_id: int, online: bool) -> User:
    """Record the online flag and stamp ``last_seen``."""

    user = get_profile(db, user_id)
    user.is_online = online
    user.last_seen = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _relationship_statuses(db: Session, user_id: int, candidate_ids: list[int]) -> dict[int, str]:
    statuses: dict[int, str] = {}
    if not candidate_ids:
        return statuses

    pending_stmt = select(FriendRequest).where(
        FriendRequest.status == FriendRequestStatus.PENDING,
        or_(
            (FriendRequest.from_user_id == user_id) & FriendRequest.to_user_id.in_(candidate_ids),
            (FriendRequest.to_user_id == user_id) & FriendRequest.from_user_id.in_(candidate_ids),
        ),
    )
    for request in db.execute(pending_stmt).scalars():
        other = request.to_user_id if request.from_user_id == user_id else request.from_user_id
        statuses[other] = "pending"

    friendship_stmt = select(Friendship).where(
        or_(
            (Friendship.user1_id == user_id) & Friendship.user2_id.in_(candidate_ids),
            (Friendship.user2_id == user_id) & Friendship.user1_id.in_(candidate_ids),
        )
    )
    for friendship in db.execute(friendship_stmt).scalars():
        statuses[friendship.other_user_id(user_id)] = friendship.status.value
    return statuses


def search_users(
    db: Session, ctx: SessionContext, query: str, limit: int = 20
) -> list[tuple[User, str]]:
    """Find users whose display name or email contains ``query``.

    Each hit is paired with the caller's friendship status towards it.
    """

    term = query.strip().lower()
    if not term:
        return []
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    stmt = (
        select(User)
        .where(
            User.id != ctx.user_id,
            or_(
                func.lower(User.display_name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ),
        )
        .order_by(User.display_name.asc(), User.id.asc())
        .limit(limit)
    )
    users = list(db.execute(stmt).scalars())
    statuses = _relationship_statuses(db, ctx.user_id, [user.id for user in users])
    return [(user, statuses.get(user.id, "none")) for user in users]
