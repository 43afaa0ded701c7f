"""Account helpers: registration, login, profile and deactivation."""
from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inkwell.core import security
from inkwell.core.errors import ConflictError, NotFoundError, UnauthenticatedError
from inkwell.db.time import utcnow
from inkwell.models.user import User
from inkwell.schemas.user import ProfileUpdateRequest, RegisterRequest, UserProfile

logger = logging.getLogger(__name__)

__all__ = [
    "authenticate",
    "deactivate_user",
    "get_active_user",
    "get_profile",
    "issue_token",
    "register_user",
    "update_profile",
]


def issue_token(user: User) -> str:
    """Return a bearer token identifying ``user``."""
    return security.create_access_token(
        user.id,
        extra_claims={"email": user.email, "username": user.username},
    )


def get_active_user(db: Session, user_id: int) -> User | None:
    """Return an active user by primary key."""
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def register_user(db: Session, payload: RegisterRequest) -> User:
    """Persist a new account with a bcrypt-hashed password.

    Raises:
        ConflictError: If the username or email is already taken.
    """
    email = payload.email.lower()
    existing = db.execute(
        select(User.id).where(or_(User.username == payload.username, User.email == email))
    ).first()
    if existing is not None:
        raise ConflictError("User with this email or username already exists")

    user = User(
        username=payload.username,
        email=email,
        password_hash=security.hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email or username already exists") from None
    db.refresh(user)
    logger.info("Registered user %d (%s)", user.id, user.username)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Verify credentials, record the login time and return the user.

    Unknown email, wrong password and deactivated accounts all fail the same
    way so the response does not reveal which accounts exist.
    """
    user = db.execute(select(User).where(User.email == email.lower())).scalars().first()
    if (
        user is None
        or not user.is_active
        or not security.verify_password(password, user.password_hash)
    ):
        logger.warning("Failed login attempt for %s", email)
        raise UnauthenticatedError("Invalid credentials")

    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def get_profile(db: Session, user_id: int) -> UserProfile:
    """Return the account owner's profile with summaries of their posts."""
    user = get_active_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserProfile.model_validate(user)


def update_profile(db: Session, user: User, update_data: ProfileUpdateRequest) -> User:
    """Apply partial updates to an existing user."""
    update_dict = update_data.model_dump(exclude_unset=True)
    for key, value in update_dict.items():
        setattr(user, key, value)

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Updated profile for user %d", user.id)
    return user


def deactivate_user(db: Session, user: User) -> User:
    """Soft-delete an account; its tokens stop resolving from now on."""
    user.is_active = False
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Deactivated user %d", user.id)
    return user
