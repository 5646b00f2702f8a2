"""Domain errors raised by the service layer."""

from __future__ import annotations

from fastapi import status


class ChatLinkError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(ChatLinkError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class PermissionDenied(ChatLinkError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions"


class InvalidRequest(ChatLinkError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class DuplicateRequest(ChatLinkError):
    """A pending friend request already exists between the two users."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "A pending friend request already exists"


class AlreadyProcessed(ChatLinkError):
    """The friend request has already been accepted or rejected."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Friend request has already been processed"


class AlreadyFriends(ChatLinkError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Users are already friends"


class PayloadTooLarge(ChatLinkError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = "Upload exceeds allowed size"
