"""Data access helpers for working with posts and their aggregates."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.orm import Session, joinedload, selectinload

from inkwell.models.comment import Comment
from inkwell.models.like import Like
from inkwell.models.post import Post, PostTag

__all__ = ["AggregatedPostRow", "PostFilter", "PostRepository", "escape_like"]

# (post, comment_count, like_count, is_liked-or-None)
AggregatedPostRow = tuple[Post, int, int, bool | None]


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term is matched literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostFilter:
    """Filters applied to a published-post listing."""

    def __init__(
        self,
        *,
        search: str | None = None,
        tags: Sequence[str] | None = None,
        author_id: int | None = None,
    ) -> None:
        self.search = search
        self.tags = list(tags or [])
        self.author_id = author_id

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        """Restrict ``stmt`` to published posts matching every supplied filter."""
        stmt = stmt.where(Post.is_published.is_(True))
        if self.search:
            pattern = f"%{escape_like(self.search)}%"
            stmt = stmt.where(
                or_(
                    Post.title.ilike(pattern, escape="\\"),
                    Post.content.ilike(pattern, escape="\\"),
                )
            )
        if self.tags:
            # A post matches when its tag set intersects the requested tags.
            tagged = select(PostTag.post_id).where(PostTag.tag.in_(self.tags))
            stmt = stmt.where(Post.id.in_(tagged))
        if self.author_id is not None:
            stmt = stmt.where(Post.author_id == self.author_id)
        return stmt


class PostRepository:
    """Thin wrapper around database access for post entities.

    The listing and detail reads resolve comment counts, like counts and the
    viewer's like flag as correlated subqueries of a single statement, so a
    page costs the same number of round trips whatever its size.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    @staticmethod
    def _aggregated_select(viewer_id: int | None) -> Select[Any]:
        comment_count = (
            select(func.count(Comment.id))
            .where(Comment.post_id == Post.id)
            .correlate(Post)
            .scalar_subquery()
        )
        like_count = (
            select(func.count(Like.id))
            .where(Like.post_id == Post.id)
            .correlate(Post)
            .scalar_subquery()
        )
        columns: list[Any] = [
            Post,
            comment_count.label("comment_count"),
            like_count.label("like_count"),
        ]
        if viewer_id is not None:
            is_liked = (
                select(Like.id)
                .where(Like.post_id == Post.id, Like.user_id == viewer_id)
                .correlate(Post)
                .exists()
            )
            columns.append(is_liked.label("is_liked"))
        return select(*columns).options(
            joinedload(Post.author),
            selectinload(Post.tag_rows),
        )

    @staticmethod
    def _to_rows(result: Sequence[Any], viewer_id: int | None) -> list[AggregatedPostRow]:
        rows: list[AggregatedPostRow] = []
        for row in result:
            is_liked = bool(row[3]) if viewer_id is not None else None
            rows.append((row[0], int(row[1] or 0), int(row[2] or 0), is_liked))
        return rows

    def count_published(self, post_filter: PostFilter) -> int:
        """Return how many published posts match the filter."""
        stmt = post_filter.apply(select(func.count(Post.id)))
        return int(self.session.execute(stmt).scalar_one())

    def list_published(
        self,
        post_filter: PostFilter,
        *,
        order_by: Any,
        descending: bool,
        offset: int,
        limit: int,
        viewer_id: int | None = None,
    ) -> list[AggregatedPostRow]:
        """Return one page of published posts with their aggregates."""
        stmt = post_filter.apply(self._aggregated_select(viewer_id))
        if descending:
            stmt = stmt.order_by(order_by.desc(), Post.id.desc())
        else:
            stmt = stmt.order_by(order_by.asc(), Post.id.asc())
        stmt = stmt.offset(offset).limit(limit)
        result = self.session.execute(stmt).all()
        return self._to_rows(result, viewer_id)

    def get_aggregated(
        self, post_id: int, viewer_id: int | None = None
    ) -> AggregatedPostRow | None:
        """Return a single post with aggregates, reloading any cached instance."""
        stmt = (
            self._aggregated_select(viewer_id)
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        result = self.session.execute(stmt).all()
        rows = self._to_rows(result, viewer_id)
        return rows[0] if rows else None

    def increment_view_count(self, post_id: int) -> bool:
        """Bump ``view_count`` on a published post; False if no such post is visible."""
        stmt = (
            update(Post)
            .where(Post.id == post_id, Post.is_published.is_(True))
            .values(view_count=Post.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount)

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def get_for_update(self, post_id: int) -> Post | None:
        """Return a post while holding its row lock for the rest of the transaction."""
        stmt = select(Post).where(Post.id == post_id).with_for_update()
        return self.session.execute(stmt).scalars().first()

    def find_like(self, user_id: int, post_id: int) -> Like | None:
        """Return the like row for (user, post), if any."""
        stmt = select(Like).where(Like.user_id == user_id, Like.post_id == post_id)
        return self.session.execute(stmt).scalars().first()

    def delete_like(self, user_id: int, post_id: int) -> int:
        """Delete the like row for (user, post) and return how many rows went away."""
        stmt = (
            delete(Like)
            .where(Like.user_id == user_id, Like.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)
