"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from inkwell.api.v1.dependencies import CurrentUserDep, SessionDep
from inkwell.core.settings import settings
from inkwell.schemas.comment import (
    CommentCreate,
    CommentListResponse,
    CommentMutationResponse,
    CommentUpdate,
)
from inkwell.schemas.common import MessageResponse
from inkwell.services import comment_service
from inkwell.services.pagination import PageWindow

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/post/{post_id}", response_model=CommentListResponse)
async def list_comments(
    post_id: int,
    db: SessionDep,
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> CommentListResponse:
    """Return a page of top-level comments on a post, each with its replies."""
    window = PageWindow.from_raw(page, limit, default_limit=settings.comments_page_size)
    return comment_service.get_comments_for_post(db, post_id, window)


@router.post(
    "",
    response_model=CommentMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentMutationResponse:
    """Comment on a post, or reply to a comment on the same post."""
    comment = comment_service.create_comment(db, current_user.id, payload)
    return CommentMutationResponse(message="Comment created successfully", comment=comment)


@router.put("/{comment_id}", response_model=CommentMutationResponse)
async def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentMutationResponse:
    comment = comment_service.update_comment(db, current_user.id, comment_id, payload.content)
    return CommentMutationResponse(message="Comment updated successfully", comment=comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    comment_service.delete_comment(db, current_user.id, comment_id)
    return MessageResponse(message="Comment deleted successfully")
