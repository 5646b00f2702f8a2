"""Friend request state machine and friendship bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from chatlink.core.errors import (
    AlreadyFriends,
    AlreadyProcessed,
    DuplicateRequest,
    InvalidRequest,
    NotFound,
    PermissionDenied,
)
from chatlink.core.session import SessionContext
from chatlink.models import (
    FriendRequest,
    FriendRequestStatus,
    Friendship,
    FriendshipStatus,
    User,
    pair_key,
)
from chatlink.services import notifications
from chatlink.services.notifications import FanOutResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RequestOutcome:
    """Friend request after a transition, plus the notification it triggered."""

    request: FriendRequest
    notifications: FanOutResult


def _normalize_pair(user_id: int, other_id: int) -> tuple[int, int]:
    return (user_id, other_id) if user_id < other_id else (other_id, user_id)


def get_friendship(db: Session, user_id: int, other_id: int) -> Friendship | None:
    user1_id, user2_id = _normalize_pair(user_id, other_id)
    stmt = select(Friendship).where(
        Friendship.user1_id == user1_id,
        Friendship.user2_id == user2_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def get_pending_request(db: Session, user_id: int, other_id: int) -> FriendRequest | None:
    """Return the pending request between two users, in either direction."""

    stmt = select(FriendRequest).where(
        FriendRequest.status == FriendRequestStatus.PENDING,
        or_(
            (FriendRequest.from_user_id == user_id) & (FriendRequest.to_user_id == other_id),
            (FriendRequest.from_user_id == other_id) & (FriendRequest.to_user_id == user_id),
        ),
    )
    return db.execute(stmt).scalars().first()


def _require_request(db: Session, request_id: int) -> FriendRequest:
    stmt = (
        select(FriendRequest)
        .where(FriendRequest.id == request_id)
        .options(selectinload(FriendRequest.from_user), selectinload(FriendRequest.to_user))
    )
    request = db.execute(stmt).scalar_one_or_none()
    if request is None:
        raise NotFound("Friend request not found")
    return request


def send_request(
    db: Session, ctx: SessionContext, to_user_id: int, message: str | None = None
) -> RequestOutcome:
    """Create a pending request from the caller to ``to_user_id``."""

    if to_user_id == ctx.user_id:
        raise InvalidRequest("Cannot send a friend request to yourself")
    if db.get(User, to_user_id) is None:
        raise NotFound("User not found")
    existing = get_friendship(db, ctx.user_id, to_user_id)
    if existing is not None:
        if existing.status == FriendshipStatus.BLOCKED:
            raise PermissionDenied("Friend requests between these users are blocked")
        raise AlreadyFriends("Friendship already exists")
    if get_pending_request(db, ctx.user_id, to_user_id) is not None:
        raise DuplicateRequest()

    request = FriendRequest(
        from_user_id=ctx.user_id,
        to_user_id=to_user_id,
        message=message or None,
        status=FriendRequestStatus.PENDING,
        pending_key=pair_key(ctx.user_id, to_user_id),
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateRequest() from exc
    db.refresh(request)
    logger.info("Friend request %s sent from %s to %s", request.id, ctx.user_id, to_user_id)

    draft = notifications.friend_request_draft(
        request_id=request.id,
        from_user_id=ctx.user_id,
        sender_name=ctx.display_name,
        message=request.message,
    )
    result = notifications.fan_out(db, [to_user_id], draft)
    return RequestOutcome(request=request, notifications=result)


def _create_friendship(db: Session, request: FriendRequest, accepted_at: datetime) -> Friendship:
    user1_id, user2_id = _normalize_pair(request.from_user_id, request.to_user_id)
    friendship = Friendship(
        user1_id=user1_id,
        user2_id=user2_id,
        status=FriendshipStatus.ACCEPTED,
        request_id=request.id,
        accepted_at=accepted_at,
    )
    db.add(friendship)
    db.flush()
    return friendship


def accept_request(db: Session, ctx: SessionContext, request_id: int) -> RequestOutcome:
    """Accept a pending request addressed to the caller.

    The status change and the new friendship row are committed together or
    not at all.
    """

    request = _require_request(db, request_id)
    if request.to_user_id != ctx.user_id:
        raise PermissionDenied("Only the recipient can accept a friend request")
    if request.status != FriendRequestStatus.PENDING:
        raise AlreadyProcessed()

    now = datetime.now(timezone.utc)
    try:
        request.status = FriendRequestStatus.ACCEPTED
        request.pending_key = None
        request.responded_at = now
        db.add(request)
        _create_friendship(db, request, now)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.error("Accepting friend request %s conflicted with an existing friendship", request_id)
        raise AlreadyFriends("Friendship already exists") from exc
    except Exception:
        db.rollback()
        logger.error("Accepting friend request %s failed; rolled back", request_id, exc_info=True)
        raise
    db.refresh(request)
    logger.info("Friend request %s accepted by %s", request.id, ctx.user_id)

    draft = notifications.friend_accepted_draft(
        request_id=request.id,
        accepter_id=ctx.user_id,
        accepter_name=ctx.display_name,
    )
    result = notifications.fan_out(db, [request.from_user_id], draft)
    return RequestOutcome(request=request, notifications=result)


def reject_request(db: Session, ctx: SessionContext, request_id: int) -> FriendRequest:
    """Reject a pending request. The sender may use this to withdraw it."""

    request = _require_request(db, request_id)
    if ctx.user_id not in (request.to_user_id, request.from_user_id):
        raise PermissionDenied("Not a party to this friend request")
    if request.status != FriendRequestStatus.PENDING:
        raise AlreadyProcessed()

    request.status = FriendRequestStatus.REJECTED
    request.pending_key = None
    request.responded_at = datetime.now(timezone.utc)
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("Friend request %s rejected by %s", request.id, ctx.user_id)
    return request


def remove_friendship(db: Session, ctx: SessionContext, other_id: int) -> bool:
    """Delete the friendship with ``other_id``. Returns False when there was none.

    A blocked friendship can only be removed by the user who blocked it.
    """

    friendship = get_friendship(db, ctx.user_id, other_id)
    if friendship is None:
        return False
    if friendship.status == FriendshipStatus.BLOCKED and friendship.blocked_by_id != ctx.user_id:
        raise PermissionDenied("Only the user who blocked can remove this friendship")
    db.delete(friendship)
    db.commit()
    logger.info("Friendship between %s and %s removed", ctx.user_id, other_id)
    return True


def block_friend(db: Session, ctx: SessionContext, other_id: int) -> Friendship:
    friendship = get_friendship(db, ctx.user_id, other_id)
    if friendship is None:
        raise NotFound("Friendship not found")
    if friendship.status != FriendshipStatus.BLOCKED:
        friendship.status = FriendshipStatus.BLOCKED
        friendship.blocked_by_id = ctx.user_id
        friendship.blocked_at = datetime.now(timezone.utc)
        db.add(friendship)
        db.commit()
        db.refresh(friendship)
    return friendship


def list_friends(db: Session, user_id: int) -> list[tuple[Friendship, User]]:
    """Accepted friendships of ``user_id`` with the friend's profile, newest first."""

    stmt = (
        select(Friendship)
        .where(
            Friendship.status == FriendshipStatus.ACCEPTED,
            or_(Friendship.user1_id == user_id, Friendship.user2_id == user_id),
        )
        .options(selectinload(Friendship.user1), selectinload(Friendship.user2))
        .order_by(Friendship.accepted_at.desc(), Friendship.id.desc())
    )
    friends: list[tuple[Friendship, User]] = []
    for friendship in db.execute(stmt).scalars():
        other = friendship.user2 if friendship.user1_id == user_id else friendship.user1
        friends.append((friendship, other))
    return friends


def _pending_requests(db: Session, *criteria) -> list[FriendRequest]:
    stmt = (
        select(FriendRequest)
        .where(FriendRequest.status == FriendRequestStatus.PENDING, *criteria)
        .options(selectinload(FriendRequest.from_user), selectinload(FriendRequest.to_user))
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
    )
    return list(db.execute(stmt).scalars())


def list_pending_received(db: Session, user_id: int) -> list[FriendRequest]:
    return _pending_requests(db, FriendRequest.to_user_id == user_id)


def list_pending_sent(db: Session, user_id: int) -> list[FriendRequest]:
    return _pending_requests(db, FriendRequest.from_user_id == user_id)
