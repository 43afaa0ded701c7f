"""Repository classes wrapping SQLAlchemy sessions."""

from .comment_repo import CommentRepository
from .post_repo import PostFilter, PostRepository

__all__ = ["CommentRepository", "PostFilter", "PostRepository"]
