"""Comment tree assembly and comment mutations.

Only one level of nesting is ever materialized: a reply to a reply is
stored against the top-level comment it ultimately belongs to, so every
thread is a top-level comment plus a flat, oldest-first list of replies.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy.orm import Session

from inkwell.core.errors import ForbiddenError, NotFoundError
from inkwell.models.comment import Comment
from inkwell.models.post import Post
from inkwell.models.user import User
from inkwell.repositories.comment_repo import CommentRepository
from inkwell.schemas.comment import (
    CommentCreate,
    CommentListResponse,
    CommentRecord,
    CommentThread,
)
from inkwell.schemas.user import AuthorSummary
from inkwell.services.pagination import PageWindow, build_pagination

logger = logging.getLogger(__name__)

__all__ = [
    "assemble_comment_tree",
    "create_comment",
    "delete_comment",
    "get_comments_for_post",
    "load_comment_tree",
    "update_comment",
]


def _to_record(comment: Comment, author: User) -> CommentRecord:
    return CommentRecord(
        id=comment.id,
        content=comment.content,
        post_id=comment.post_id,
        author_id=comment.author_id,
        parent_id=comment.parent_id,
        is_approved=comment.is_approved,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author=AuthorSummary.model_validate(author),
    )


def assemble_comment_tree(
    top_level: Sequence[Comment],
    replies: Sequence[Comment],
    authors: dict[int, User],
) -> list[CommentThread]:
    """Attach each reply to its parent thread, preserving the input order.

    Replies whose parent is not among ``top_level`` are ignored.
    """
    replies_by_parent: dict[int, list[CommentRecord]] = defaultdict(list)
    for reply in replies:
        if reply.parent_id is not None:
            replies_by_parent[reply.parent_id].append(_to_record(reply, authors[reply.author_id]))

    threads: list[CommentThread] = []
    for comment in top_level:
        record = _to_record(comment, authors[comment.author_id])
        threads.append(
            CommentThread(**record.model_dump(), replies=replies_by_parent.get(comment.id, []))
        )
    return threads


def _build_threads(repo: CommentRepository, top_level: list[Comment]) -> list[CommentThread]:
    if not top_level:
        return []
    replies = repo.list_replies(comment.id for comment in top_level)
    authors = repo.authors_by_id(comment.author_id for comment in [*top_level, *replies])
    return assemble_comment_tree(top_level, replies, authors)


def load_comment_tree(db: Session, post_id: int) -> list[CommentThread]:
    """Return every thread on a post without pagination (post detail view)."""
    repo = CommentRepository(db)
    return _build_threads(repo, repo.list_top_level(post_id))


def get_comments_for_post(db: Session, post_id: int, window: PageWindow) -> CommentListResponse:
    """Return one page of top-level comments for a post, each with its replies.

    The page window and its metadata count top-level comments only. Replies
    and authors for the whole page are fetched in one query each.

    Raises:
        NotFoundError: If the post does not exist.
    """
    if db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")

    repo = CommentRepository(db)
    total = repo.count_top_level(post_id)
    top_level = repo.list_top_level(post_id, offset=window.offset, limit=window.limit)
    return CommentListResponse(
        comments=_build_threads(repo, top_level),
        pagination=build_pagination(window, total),
    )


def create_comment(db: Session, author_id: int, payload: CommentCreate) -> CommentRecord:
    """Create a comment or reply on a post.

    Raises:
        NotFoundError: If the post does not exist, or ``parent_id`` names a
            comment that does not exist or belongs to a different post.
    """
    if db.get(Post, payload.post_id) is None:
        raise NotFoundError("Post not found")

    parent_id: int | None = None
    if payload.parent_id is not None:
        repo = CommentRepository(db)
        parent = repo.get_by_id(payload.parent_id)
        if parent is None or parent.post_id != payload.post_id:
            raise NotFoundError("Parent comment not found")
        # Replies to replies join the top-level thread.
        parent_id = parent.parent_id if parent.parent_id is not None else parent.id

    comment = Comment(
        content=payload.content,
        post_id=payload.post_id,
        author_id=author_id,
        parent_id=parent_id,
        is_approved=True,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("Comment %d created on post %d by user %d", comment.id, comment.post_id, author_id)
    return _to_record(comment, comment.author)


def _owned_comment_for_update(db: Session, actor_id: int, comment_id: int) -> Comment:
    comment = CommentRepository(db).get_for_update(comment_id)
    if comment is None:
        db.rollback()
        raise NotFoundError("Comment not found")
    if comment.author_id != actor_id:
        db.rollback()
        logger.warning("User %d attempted to modify comment %d", actor_id, comment_id)
        raise ForbiddenError("Not authorized to modify this comment")
    return comment


def update_comment(db: Session, actor_id: int, comment_id: int, content: str) -> CommentRecord:
    """Replace the content of a comment owned by ``actor_id``."""
    comment = _owned_comment_for_update(db, actor_id, comment_id)
    comment.content = content
    db.commit()
    db.refresh(comment)
    logger.info("Comment %d updated by user %d", comment_id, actor_id)
    return _to_record(comment, comment.author)


def delete_comment(db: Session, actor_id: int, comment_id: int) -> int:
    """Delete a comment owned by ``actor_id`` and return its post id.

    Replies to the comment are removed by the foreign-key cascade.
    """
    comment = _owned_comment_for_update(db, actor_id, comment_id)
    post_id = comment.post_id
    db.delete(comment)
    db.commit()
    logger.info("Comment %d deleted by user %d", comment_id, actor_id)
    return post_id
