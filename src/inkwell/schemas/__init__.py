"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentRecord, CommentThread, CommentUpdate
from .common import ErrorResponse, MessageResponse, PaginationMeta
from .post import PostCreate, PostDetail, PostListItem, PostRecord, PostUpdate
from .upload import StoredFile, UploadResponse
from .user import AuthorProfile, AuthorSummary, RegisterRequest, UserResponse

__all__ = [
    "CommentCreate", "CommentRecord", "CommentThread", "CommentUpdate",
    "ErrorResponse", "MessageResponse", "PaginationMeta",
    "PostCreate", "PostDetail", "PostListItem", "PostRecord", "PostUpdate",
    "StoredFile", "UploadResponse",
    "AuthorProfile", "AuthorSummary", "RegisterRequest", "UserResponse",
]
