# src/inkwell/models/__init__.py
"""SQLAlchemy models for the Inkwell application."""

from .comment import Comment
from .like import Like
from .post import Post, PostTag
from .user import User

__all__ = [
    "Comment",
    "Like",
    "Post", "PostTag",
    "User",
]
