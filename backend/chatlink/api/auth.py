"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from chatlink.api.deps import get_session_context
from chatlink.core.security import access_token_lifetime, create_access_token, verify_password
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.models import User
from chatlink.schemas import LoginRequest, Token, UserCreate, UserRead
from chatlink.services import profiles

router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)) -> User:
    """Register a new user in the system."""

    if profiles.get_profile_by_email(db, user_in.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered",
        )
    return profiles.create_profile(
        db,
        email=user_in.email,
        password=user_in.password,
        display_name=user_in.display_name,
    )


@router.post("/login", response_model=Token)
def login_user(credentials: LoginRequest, db: Session = Depends(get_db)) -> Token:
    """Authenticate a user and return a JWT access token."""

    db_user = profiles.get_profile_by_email(db, credentials.email)
    if db_user is None or not verify_password(credentials.password, db_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    profiles.set_presence(db, db_user.id, True)
    return Token(
        access_token=create_access_token(db_user.id),
        token_type="bearer",
        expires_in=int(access_token_lifetime().total_seconds()),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout_user(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> None:
    """Mark the caller offline. Tokens are stateless and simply discarded by the client."""

    profiles.set_presence(db, ctx.user_id, False)
