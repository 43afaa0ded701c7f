"""Shared API dependencies for authentication and common functionality."""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from inkwell.core.errors import UnauthenticatedError
from inkwell.core.security import decode_access_token
from inkwell.db.session import get_db
from inkwell.models import User
from inkwell.services.storage import LocalObjectStorage, get_storage
from inkwell.services.user_service import get_active_user

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for JWT authentication; missing headers are handled below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _resolve_user(token: str, db: Session) -> User | None:
    payload = decode_access_token(token)
    if payload is None:
        return None
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        return None
    return get_active_user(db, user_id)


def get_current_user(credentials: BearerDep, db: SessionDep) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials, if any were sent
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        UnauthenticatedError: If the token is missing, invalid, or names an
            unknown or deactivated user
    """
    if credentials is None:
        raise UnauthenticatedError("Access token required")
    user = _resolve_user(credentials.credentials, db)
    if user is None:
        logger.warning("Rejected bearer token")
        raise UnauthenticatedError("Invalid or expired token")
    return user


def get_optional_user(credentials: BearerDep, db: SessionDep) -> User | None:
    """Resolve the viewer when a valid token is present, otherwise None.

    Public endpoints use this so that a stale token degrades to an
    anonymous view instead of an error.
    """
    if credentials is None:
        return None
    return _resolve_user(credentials.credentials, db)


# Type aliases for principal dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
StorageDep = Annotated[LocalObjectStorage, Depends(get_storage)]
