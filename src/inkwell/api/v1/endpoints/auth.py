"""Authentication and profile endpoints for the Inkwell API."""

from __future__ import annotations

from fastapi import APIRouter, status

from inkwell.api.v1.dependencies import CurrentUserDep, SessionDep
from inkwell.schemas.common import MessageResponse
from inkwell.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
    UserResponse,
)
from inkwell.services import user_service

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterRequest, db: SessionDep) -> AuthResponse:
    """Create an account and return it with a bearer token."""
    user = user_service.register_user(db, payload)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=user_service.issue_token(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: SessionDep) -> AuthResponse:
    """Exchange email and password for a bearer token."""
    user = user_service.authenticate(db, payload.email, payload.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=user_service.issue_token(user),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUserDep, db: SessionDep) -> ProfileResponse:
    """Return the caller's account with their posts."""
    return ProfileResponse(user=user_service.get_profile(db, current_user.id))


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ProfileUpdateResponse:
    """Update the caller's display fields."""
    user = user_service.update_profile(db, current_user, payload)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/profile", response_model=MessageResponse)
async def deactivate_account(current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    """Deactivate the caller's account; existing tokens stop working."""
    user_service.deactivate_user(db, current_user)
    return MessageResponse(message="Account deactivated successfully")
