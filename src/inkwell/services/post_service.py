"""Post listing, detail reads and post mutations."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inkwell.core.errors import ForbiddenError, NotFoundError, ValidationError
from inkwell.core.settings import settings
from inkwell.db.time import utcnow
from inkwell.models.like import Like
from inkwell.models.post import Post, PostTag
from inkwell.repositories.post_repo import AggregatedPostRow, PostFilter, PostRepository
from inkwell.schemas.post import (
    PostCreate,
    PostDetail,
    PostListItem,
    PostListResponse,
    PostRecord,
    PostUpdate,
)
from inkwell.schemas.user import AuthorProfile, AuthorSummary
from inkwell.services.comment_service import load_comment_tree
from inkwell.services.pagination import PageWindow, build_pagination

logger = logging.getLogger(__name__)

__all__ = [
    "PostListQuery",
    "SORTABLE_COLUMNS",
    "create_post",
    "delete_post",
    "derive_excerpt",
    "get_post_detail",
    "list_posts",
    "toggle_like",
    "update_post",
]

SORTABLE_COLUMNS: dict[str, Any] = {
    "createdAt": Post.created_at,
    "created_at": Post.created_at,
    "updatedAt": Post.updated_at,
    "updated_at": Post.updated_at,
    "publishedAt": Post.published_at,
    "published_at": Post.published_at,
    "title": Post.title,
    "viewCount": Post.view_count,
    "view_count": Post.view_count,
}

SORT_ORDERS = {"asc": False, "desc": True}


def _parse_tags(raw: str | Sequence[str] | None) -> list[str]:
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else [
        piece for item in raw for piece in item.split(",")
    ]
    return list(dict.fromkeys(tag.strip() for tag in parts if tag.strip()))


@dataclass(frozen=True)
class PostListQuery:
    """Resolved listing parameters.

    Use :meth:`from_raw` to build one from query-string values: bad paging
    values fall back to defaults, while an unknown sort column or direction
    is rejected.
    """

    window: PageWindow
    sort_by: str = "createdAt"
    descending: bool = True
    search: str | None = None
    tags: list[str] = field(default_factory=list)
    author_id: int | None = None

    @classmethod
    def from_raw(
        cls,
        *,
        page: Any = None,
        limit: Any = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        search: str | None = None,
        tags: str | Sequence[str] | None = None,
        author_id: Any = None,
    ) -> PostListQuery:
        window = PageWindow.from_raw(page, limit, default_limit=settings.posts_page_size)

        sort_key = sort_by or "createdAt"
        if sort_key not in SORTABLE_COLUMNS:
            raise ValidationError.for_field(
                "sortBy",
                f"Cannot sort by '{sort_key}'; expected one of "
                "createdAt, updatedAt, publishedAt, title, viewCount",
            )

        order_key = (sort_order or "desc").strip().lower()
        if order_key not in SORT_ORDERS:
            raise ValidationError.for_field("sortOrder", "sortOrder must be 'asc' or 'desc'")

        resolved_author: int | None = None
        if author_id not in (None, ""):
            try:
                resolved_author = int(str(author_id))
            except ValueError:
                raise ValidationError.for_field("authorId", "authorId must be an integer") from None

        term = search.strip() if search else None
        return cls(
            window=window,
            sort_by=sort_key,
            descending=SORT_ORDERS[order_key],
            search=term or None,
            tags=_parse_tags(tags),
            author_id=resolved_author,
        )

    def to_filter(self) -> PostFilter:
        return PostFilter(search=self.search, tags=self.tags, author_id=self.author_id)


def derive_excerpt(content: str, length: int | None = None) -> str:
    """Return the leading ``length`` characters of ``content``, marked if truncated."""
    limit = length or settings.excerpt_length
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


def _post_fields(post: Post) -> dict[str, Any]:
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "excerpt": post.excerpt,
        "image_url": post.image_url,
        "tags": sorted(row.tag for row in post.tag_rows),
        "is_published": post.is_published,
        "published_at": post.published_at,
        "view_count": post.view_count,
        "author_id": post.author_id,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
    }


def to_post_record(post: Post) -> PostRecord:
    """Convert a Post ORM instance (author loaded) to an API schema."""
    return PostRecord(**_post_fields(post), author=AuthorSummary.model_validate(post.author))


def _to_list_item(row: AggregatedPostRow) -> PostListItem:
    post, comment_count, like_count, is_liked = row
    return PostListItem(
        **_post_fields(post),
        author=AuthorSummary.model_validate(post.author),
        comment_count=comment_count,
        like_count=like_count,
        is_liked=is_liked,
    )


def list_posts(db: Session, query: PostListQuery, viewer_id: int | None = None) -> PostListResponse:
    """Return one page of published posts annotated with counts.

    Costs three statements regardless of page size: the total count, the
    page itself with its aggregates, and a batched tag load.
    """
    repo = PostRepository(db)
    post_filter = query.to_filter()
    total = repo.count_published(post_filter)
    rows = repo.list_published(
        post_filter,
        order_by=SORTABLE_COLUMNS[query.sort_by],
        descending=query.descending,
        offset=query.window.offset,
        limit=query.window.limit,
        viewer_id=viewer_id,
    )
    return PostListResponse(
        posts=[_to_list_item(row) for row in rows],
        pagination=build_pagination(query.window, total),
    )


def get_post_detail(db: Session, post_id: int, viewer_id: int | None = None) -> PostDetail:
    """Return a published post with its full comment tree and bump its view count.

    Raises:
        NotFoundError: If the post does not exist or is not published.
    """
    repo = PostRepository(db)
    if not repo.increment_view_count(post_id):
        db.rollback()
        raise NotFoundError("Post not found")

    row = repo.get_aggregated(post_id, viewer_id)
    if row is None:
        db.rollback()
        raise NotFoundError("Post not found")
    post, comment_count, like_count, is_liked = row
    comments = load_comment_tree(db, post_id)
    detail = PostDetail(
        **_post_fields(post),
        author=AuthorProfile.model_validate(post.author),
        comment_count=comment_count,
        like_count=like_count,
        is_liked=is_liked,
        comments=comments,
    )
    db.commit()
    return detail


def _sync_tags(post: Post, tags: Sequence[str]) -> None:
    # Keep rows for tags that survive so their primary keys are not re-inserted.
    wanted = list(tags)
    kept = [row for row in post.tag_rows if row.tag in wanted]
    existing = {row.tag for row in kept}
    post.tag_rows = kept + [PostTag(tag=tag) for tag in wanted if tag not in existing]


def create_post(db: Session, author_id: int, payload: PostCreate) -> PostRecord:
    """Persist a new published post and return it joined with its author."""
    now = utcnow()
    post = Post(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt if payload.excerpt else derive_excerpt(payload.content),
        image_url=payload.image_url,
        is_published=True,
        published_at=now,
        view_count=0,
        author_id=author_id,
    )
    _sync_tags(post, payload.tags or [])
    db.add(post)
    db.commit()
    logger.info("Post %d created by user %d", post.id, author_id)

    db.refresh(post)
    return to_post_record(post)


def _owned_post_for_update(repo: PostRepository, actor_id: int, post_id: int) -> Post:
    post = repo.get_for_update(post_id)
    if post is None:
        repo.session.rollback()
        raise NotFoundError("Post not found")
    if post.author_id != actor_id:
        repo.session.rollback()
        logger.warning(
            "User %d attempted to modify post %d owned by %d", actor_id, post_id, post.author_id
        )
        raise ForbiddenError("Not authorized to modify this post")
    return post


def update_post(db: Session, actor_id: int, post_id: int, payload: PostUpdate) -> PostRecord:
    """Apply the supplied fields to a post owned by ``actor_id``.

    Raises:
        NotFoundError: If the post does not exist.
        ForbiddenError: If ``actor_id`` is not the author.
    """
    repo = PostRepository(db)
    post = _owned_post_for_update(repo, actor_id, post_id)

    changes = payload.model_dump(exclude_unset=True)
    tags = changes.pop("tags", None)
    was_published = post.is_published
    for key, value in changes.items():
        setattr(post, key, value)
    if tags is not None:
        _sync_tags(post, tags)
    if post.is_published and not was_published:
        post.published_at = utcnow()

    db.commit()
    logger.info("Post %d updated by user %d", post_id, actor_id)

    db.refresh(post)
    return to_post_record(post)


def delete_post(db: Session, actor_id: int, post_id: int) -> None:
    """Delete a post owned by ``actor_id``; comments, likes and tags cascade."""
    repo = PostRepository(db)
    post = _owned_post_for_update(repo, actor_id, post_id)
    db.delete(post)
    db.commit()
    logger.info("Post %d deleted by user %d", post_id, actor_id)


def toggle_like(db: Session, user_id: int, post_id: int) -> bool:
    """Like the post if the user has not, otherwise remove the like.

    Returns the resulting state. A duplicate insert from a concurrent toggle
    violates the (user, post) unique constraint and is reported as liked; a
    delete that finds nothing left to remove is a no-op.
    """
    repo = PostRepository(db)
    if repo.get_by_id(post_id) is None:
        raise NotFoundError("Post not found")

    if repo.find_like(user_id, post_id) is not None:
        removed = repo.delete_like(user_id, post_id)
        db.commit()
        if removed:
            logger.info("User %d unliked post %d", user_id, post_id)
        else:
            logger.info("Like by user %d on post %d was already removed", user_id, post_id)
        return False

    try:
        db.add(Like(user_id=user_id, post_id=post_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Concurrent like by user %d on post %d; keeping existing row", user_id, post_id)
        return True
    logger.info("User %d liked post %d", user_id, post_id)
    return True
