"""Schemas for friend requests and friendships."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from chatlink.models.enums import FriendRequestStatus, FriendshipStatus
from chatlink.schemas.users import PublicUser


class FriendRequestCreate(BaseModel):
    """Payload for sending a friend request."""

    to_user_id: int = Field(..., description="Recipient user id")
    message: constr(strip_whitespace=True, max_length=255) | None = Field(
        default=None, description="Optional note attached to the request"
    )


class FriendRequestRead(BaseModel):
    """Serialized friend request including participants."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    from_user: PublicUser
    to_user: PublicUser
    message: str | None = None
    status: FriendRequestStatus
    created_at: datetime
    responded_at: datetime | None = None


class FriendRequestList(BaseModel):
    """Pending requests split by direction."""

    incoming: list[FriendRequestRead] = Field(default_factory=list)
    outgoing: list[FriendRequestRead] = Field(default_factory=list)


class FriendRead(PublicUser):
    """Accepted friend together with the friendship metadata."""

    friendship_id: int
    friendship_status: FriendshipStatus = FriendshipStatus.ACCEPTED
    accepted_at: datetime
