"""Profile management API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from chatlink.api.deps import get_current_user, get_session_context
from chatlink.core.errors import NotFound
from chatlink.core.session import SessionContext
from chatlink.core.storage import resolve_path, store_user_avatar
from chatlink.database import get_db
from chatlink.models import User
from chatlink.schemas import PublicUser, UserProfileRead, UserProfileUpdate, UserSearchResult
from chatlink.services import profiles

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/me", response_model=UserProfileRead)
async def read_profile(current_user: User = Depends(get_current_user)) -> UserProfileRead:
    """Return profile information for the authenticated user."""

    return UserProfileRead.model_validate(current_user, from_attributes=True)


@router.patch("", response_model=UserProfileRead)
async def update_profile(
    payload: UserProfileUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> UserProfileRead:
    """Update mutable profile fields for the current user."""

    user = profiles.update_profile(
        db,
        ctx,
        display_name=payload.display_name,
        status_message=payload.status_message,
    )
    return UserProfileRead.model_validate(user, from_attributes=True)


@router.get("/search", response_model=list[UserSearchResult])
async def search_users(
    q: str = Query(..., min_length=1, max_length=128),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[UserSearchResult]:
    """Search other users by display name or email."""

    results: list[UserSearchResult] = []
    for user, relation in profiles.search_users(db, ctx, q, limit=limit):
        results.append(
            UserSearchResult(
                id=user.id,
                email=user.email,
                display_name=user.display_name,
                avatar_url=user.avatar_url,
                is_online=user.is_online,
                last_seen=user.last_seen,
                friendship_status=relation,
            )
        )
    return results


@router.post("/avatar", response_model=UserProfileRead)
async def upload_avatar(
    avatar: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> UserProfileRead:
    """Store a new avatar image for the user."""

    stored = await store_user_avatar(ctx.user_id, avatar)
    user = profiles.set_avatar(db, ctx, stored)
    return UserProfileRead.model_validate(user, from_attributes=True)


@router.get("/avatar/{user_id}")
async def fetch_avatar(user_id: int, db: Session = Depends(get_db)) -> FileResponse:
    """Serve a stored avatar image for a user."""

    user = db.get(User, user_id)
    if user is None or not user.avatar_path:
        raise NotFound("Avatar not found")

    return FileResponse(
        resolve_path(user.avatar_path),
        media_type=user.avatar_content_type or "application/octet-stream",
    )


@router.get("/{user_id}", response_model=PublicUser)
async def read_public_profile(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> PublicUser:
    return PublicUser.model_validate(profiles.get_profile(db, user_id), from_attributes=True)
