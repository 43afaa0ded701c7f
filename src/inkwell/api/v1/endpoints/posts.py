"""Post endpoints: listing, detail, mutations and the like toggle."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from inkwell.api.v1.dependencies import CurrentUserDep, OptionalUserDep, SessionDep
from inkwell.schemas.common import MessageResponse
from inkwell.schemas.post import (
    LikeToggleResponse,
    PostCreate,
    PostDetailResponse,
    PostListResponse,
    PostMutationResponse,
    PostUpdate,
)
from inkwell.services import post_service
from inkwell.services.post_service import PostListQuery

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
async def list_posts(
    db: SessionDep,
    viewer: OptionalUserDep,
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Page size, at most the configured maximum"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder", description="asc or desc"),
    search: str | None = Query(None, description="Case-insensitive match on title or content"),
    tags: str | None = Query(None, description="Comma-separated tags; any match qualifies"),
    author_id: str | None = Query(None, alias="authorId"),
) -> PostListResponse:
    """List published posts with comment/like counts and pagination metadata.

    Paging values are read leniently and fall back to defaults; an unknown
    ``sortBy`` or ``sortOrder`` is rejected.
    """
    query = PostListQuery.from_raw(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
        tags=tags,
        author_id=author_id,
    )
    return post_service.list_posts(db, query, viewer.id if viewer else None)


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(post_id: int, db: SessionDep, viewer: OptionalUserDep) -> PostDetailResponse:
    """Return a published post with its comments; each call counts as a view."""
    detail = post_service.get_post_detail(db, post_id, viewer.id if viewer else None)
    return PostDetailResponse(post=detail)


@router.post(
    "",
    response_model=PostMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostMutationResponse:
    """Publish a new post authored by the caller."""
    post = post_service.create_post(db, current_user.id, payload)
    return PostMutationResponse(message="Post created successfully", post=post)


@router.put("/{post_id}", response_model=PostMutationResponse)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostMutationResponse:
    """Apply a partial update to one of the caller's posts."""
    post = post_service.update_post(db, current_user.id, post_id, payload)
    return PostMutationResponse(message="Post updated successfully", post=post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Delete one of the caller's posts together with its comments and likes."""
    post_service.delete_post(db, current_user.id, post_id)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> LikeToggleResponse:
    """Like the post, or remove the caller's like if it already exists."""
    liked = post_service.toggle_like(db, current_user.id, post_id)
    return LikeToggleResponse(
        message="Post liked" if liked else "Post unliked",
        liked=liked,
    )
