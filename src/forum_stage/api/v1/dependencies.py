"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from forum_stage.core.security import JWTError, decode_subject
from forum_stage.db.session import get_db
from forum_stage.models import User

# HTTP Bearer scheme for JWT authentication; missing credentials are allowed
# so read-only routes can serve anonymous visitors.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User | None:
    """Return the signed-in user, or None for anonymous requests.

    Raises:
        HTTPException: If a token is present but invalid or names no user.
    """
    if credentials is None:
        return None
    try:
        user_id = decode_subject(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """Require a signed-in user.

    Raises:
        HTTPException: If the request carries no credentials.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_moderator(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Require a user of moderator rank."""
    if not user.is_moderator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator access required",
        )
    return user


# Type aliases for user dependencies
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
ModeratorDep = Annotated[User, Depends(get_moderator)]
