"""Post-related Pydantic schemas."""

from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from pydantic import Field, SerializerFunctionWrapHandler, field_validator, model_serializer

from .comment import CommentThread
from .common import CamelModel, PaginationMeta
from .user import AuthorProfile, AuthorSummary

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def _validate_image_url(value: str | None) -> str | None:
    if value is None:
        return value
    # Either an absolute http(s) URL or a path served by this API (local uploads).
    if value.startswith("/"):
        return value
    parts = urlsplit(value)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ValueError("imageUrl must be an http(s) URL or an absolute path")
    return value


def _normalize_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return value
    seen: dict[str, None] = {}
    for raw in value:
        tag = raw.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
        seen.setdefault(tag, None)
    if len(seen) > MAX_TAGS:
        raise ValueError(f"A post may carry at most {MAX_TAGS} tags")
    return list(seen)


class PostCreate(CamelModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=50_000)
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=2048)
    tags: list[str] | None = Field(None, description="Free-form tags, at most 10")

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: str | None) -> str | None:
        return _validate_image_url(value)

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_tags(value)


class PostUpdate(CamelModel):
    """Partial update for a post; only supplied fields are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1, max_length=50_000)
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=2048)
    tags: list[str] | None = None
    is_published: bool | None = None

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: str | None) -> str | None:
        return _validate_image_url(value)

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_tags(value)

    @field_validator("title", "content", "is_published")
    @classmethod
    def _reject_explicit_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field may be omitted but not set to null")
        return value


class PostRecord(CamelModel):
    """A post joined with its author's public identity."""

    id: int
    title: str
    content: str
    excerpt: str | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool
    published_at: datetime | None = None
    view_count: int
    author_id: int
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary


class PostListItem(PostRecord):
    """A post annotated with derived counts and the viewer's like state.

    ``is_liked`` is only present on the wire when the request had a viewer.
    """

    comment_count: int = 0
    like_count: int = 0
    is_liked: bool | None = None

    @model_serializer(mode="wrap")
    def _omit_anonymous_like_flag(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if self.is_liked is None:
            data.pop("isLiked", None)
            data.pop("is_liked", None)
        return data


class PostDetail(PostListItem):
    """Single post with full author profile and nested comment tree."""

    author: AuthorProfile
    comments: list[CommentThread] = Field(default_factory=list)


class PostListResponse(CamelModel):
    """Paginated post listing."""

    posts: list[PostListItem]
    pagination: PaginationMeta


class PostDetailResponse(CamelModel):
    """Envelope for the post detail endpoint."""

    post: PostDetail


class PostMutationResponse(CamelModel):
    """Envelope returned by post create/update."""

    message: str
    post: PostRecord


class LikeToggleResponse(CamelModel):
    """Outcome of the like toggle."""

    message: str
    liked: bool
