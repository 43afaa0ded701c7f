"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel, PaginationMeta
from .user import AuthorSummary


class CommentCreate(CamelModel):
    """Schema for creating a comment or a reply."""

    content: str = Field(..., min_length=1, max_length=5000)
    post_id: int = Field(..., gt=0)
    parent_id: int | None = Field(None, gt=0, description="Comment being replied to")


class CommentUpdate(CamelModel):
    """Schema for editing a comment's content."""

    content: str = Field(..., min_length=1, max_length=5000)


class CommentRecord(CamelModel):
    """A comment joined with its author's public identity."""

    id: int
    content: str
    post_id: int
    author_id: int
    parent_id: int | None = None
    is_approved: bool
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary


class CommentThread(CommentRecord):
    """A top-level comment with its direct replies, oldest first."""

    replies: list[CommentRecord] = Field(default_factory=list)


class CommentListResponse(CamelModel):
    """Paginated page of top-level comments for a post."""

    comments: list[CommentThread]
    pagination: PaginationMeta


class CommentMutationResponse(CamelModel):
    """Envelope returned by comment create/update."""

    message: str
    comment: CommentRecord
