"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from .common import CamelModel

USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"


class RegisterRequest(CamelModel):
    """Schema for account registration."""

    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class LoginRequest(CamelModel):
    """Schema for login submissions."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(CamelModel):
    """Schema for updating user profile information."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    avatar: str | None = Field(None, max_length=2048, description="URL returned by the upload API")


class AuthorSummary(CamelModel):
    """Public identity subset attached to listed posts and comments."""

    id: int
    username: str
    avatar: str | None = None


class AuthorProfile(AuthorSummary):
    """Author identity shown on a post detail page."""

    first_name: str | None = None
    last_name: str | None = None


class UserResponse(CamelModel):
    """Account information returned to the account owner. Never includes the password."""

    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserPostSummary(CamelModel):
    """Minimal post reference listed on a profile."""

    id: int
    title: str
    created_at: datetime


class UserProfile(UserResponse):
    """Profile view including the user's own posts."""

    posts: list[UserPostSummary] = Field(default_factory=list)


class AuthResponse(CamelModel):
    """Response returned after registration or login."""

    message: str
    user: UserResponse
    token: str = Field(..., description="JWT bearer token")


class ProfileResponse(CamelModel):
    """Envelope for the profile read endpoint."""

    user: UserProfile


class ProfileUpdateResponse(CamelModel):
    """Envelope for profile mutations."""

    message: str
    user: UserResponse
