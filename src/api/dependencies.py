"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.config import get_settings
from src.database import get_db
from src.models.user import User
from src.services.auth import resolve_session_user_id
from src.services.routine_service import RoutineService
from src.services.routine_store import RoutineStore

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_session_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Read the session token from the bearer header, falling back to the cookie."""
    if credentials is not None:
        return credentials.credentials

    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise _unauthorized("Not authenticated")
    return token


def get_current_user(
    token: Annotated[str, Depends(get_session_token)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from the session token."""
    user_id = resolve_session_user_id(token)
    if user_id is None:
        raise _unauthorized("Invalid authentication credentials")

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    return user


def get_routine_service(
    db: Annotated[Session, Depends(get_db)],
) -> RoutineService:
    """Get routine service bound to this request's session."""
    return RoutineService(RoutineStore(db), tz=get_settings().tzinfo)
