"""FastAPI dependencies for the API layer."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from chatlink.core.security import decode_access_token
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

_CREDENTIALS_ERROR = "Could not validate credentials"


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve the profile a bearer token was issued for, or raise HTTP 401.

    Shared by the HTTP dependencies and the WebSocket handshake.
    """

    subject = decode_access_token(token)["sub"]
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_CREDENTIALS_ERROR) from None

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_CREDENTIALS_ERROR)
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return get_user_from_token(token, db)


def get_session_context(current_user: User = Depends(get_current_user)) -> SessionContext:
    """Identity of the caller, passed explicitly into service functions."""

    return SessionContext.for_user(current_user)
