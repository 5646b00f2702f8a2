"""Friend request and friendship endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from chatlink.api.deps import get_session_context
from chatlink.api.notifications import publish_fan_out
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.models import Friendship, FriendRequest, User
from chatlink.schemas import (
    FriendRead,
    FriendRequestCreate,
    FriendRequestList,
    FriendRequestRead,
    PublicUser,
)
from chatlink.services import friendships

router = APIRouter(prefix="/friends", tags=["friends"])


def _serialize_public_user(user: User) -> PublicUser:
    return PublicUser.model_validate(user, from_attributes=True)


def _serialize_request(request: FriendRequest) -> FriendRequestRead:
    return FriendRequestRead(
        id=request.id,
        from_user=_serialize_public_user(request.from_user),
        to_user=_serialize_public_user(request.to_user),
        message=request.message,
        status=request.status,
        created_at=request.created_at,
        responded_at=request.responded_at,
    )


def _serialize_friend(friendship: Friendship, friend: User) -> FriendRead:
    return FriendRead(
        **_serialize_public_user(friend).model_dump(),
        friendship_id=friendship.id,
        friendship_status=friendship.status,
        accepted_at=friendship.accepted_at,
    )


@router.get("", response_model=list[FriendRead])
async def list_friends(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[FriendRead]:
    """Return accepted friends for the current user, most recent first."""

    return [
        _serialize_friend(friendship, friend)
        for friendship, friend in friendships.list_friends(db, ctx.user_id)
    ]


@router.get("/requests", response_model=FriendRequestList)
async def list_friend_requests(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> FriendRequestList:
    """Return pending incoming and outgoing friend requests."""

    return FriendRequestList(
        incoming=[_serialize_request(entry) for entry in friendships.list_pending_received(db, ctx.user_id)],
        outgoing=[_serialize_request(entry) for entry in friendships.list_pending_sent(db, ctx.user_id)],
    )


@router.post("/requests", response_model=FriendRequestRead, status_code=status.HTTP_201_CREATED)
async def create_friend_request(
    payload: FriendRequestCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> FriendRequestRead:
    """Send a new friend request."""

    outcome = friendships.send_request(db, ctx, payload.to_user_id, payload.message)
    response = _serialize_request(outcome.request)
    await publish_fan_out(outcome.notifications)
    return response


@router.post("/requests/{request_id}/accept", response_model=FriendRequestRead)
async def accept_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> FriendRequestRead:
    outcome = friendships.accept_request(db, ctx, request_id)
    response = _serialize_request(outcome.request)
    await publish_fan_out(outcome.notifications)
    return response


@router.post("/requests/{request_id}/reject", response_model=FriendRequestRead)
async def reject_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> FriendRequestRead:
    return _serialize_request(friendships.reject_request(db, ctx, request_id))


@router.post("/{user_id}/block", response_model=FriendRead)
async def block_friend(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> FriendRead:
    friendship = friendships.block_friend(db, ctx, user_id)
    friend = friendship.user2 if friendship.user1_id == ctx.user_id else friendship.user1
    return _serialize_friend(friendship, friend)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> None:
    """Remove a friend. Removing someone who is not a friend is not an error."""

    friendships.remove_friendship(db, ctx, user_id)
