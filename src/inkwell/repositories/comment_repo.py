"""Data access helpers for comments and comment authors."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inkwell.models.comment import Comment
from inkwell.models.user import User

__all__ = ["CommentRepository"]


class CommentRepository:
    """Thin wrapper around database access for comment entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def count_top_level(self, post_id: int) -> int:
        stmt = select(func.count(Comment.id)).where(
            Comment.post_id == post_id,
            Comment.parent_id.is_(None),
        )
        return int(self.session.execute(stmt).scalar_one())

    def list_top_level(
        self,
        post_id: int,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Comment]:
        """Return top-level comments oldest first, optionally windowed."""
        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id, Comment.parent_id.is_(None))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        if limit is not None:
            stmt = stmt.offset(offset).limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_replies(self, parent_ids: Iterable[int]) -> list[Comment]:
        """Return every reply to the given comments in one query, oldest first."""
        ids = list(parent_ids)
        if not ids:
            return []
        stmt = (
            select(Comment)
            .where(Comment.parent_id.in_(ids))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return list(self.session.execute(stmt).scalars())

    def authors_by_id(self, author_ids: Iterable[int]) -> dict[int, User]:
        """Batch-load comment authors keyed by id."""
        ids = set(author_ids)
        if not ids:
            return {}
        stmt = select(User).where(User.id.in_(ids))
        return {user.id: user for user in self.session.execute(stmt).scalars()}

    def get_by_id(self, comment_id: int) -> Comment | None:
        return self.session.get(Comment, comment_id)

    def get_for_update(self, comment_id: int) -> Comment | None:
        """Return a comment while holding its row lock."""
        stmt = select(Comment).where(Comment.id == comment_id).with_for_update()
        return self.session.execute(stmt).scalars().first()
