"""Business logic services for the Inkwell application."""

from . import comment_service, post_service, user_service
from .pagination import PageWindow, build_pagination
from .storage import LocalObjectStorage, get_storage

__all__ = [
    "LocalObjectStorage",
    "PageWindow",
    "build_pagination",
    "comment_service",
    "get_storage",
    "post_service",
    "user_service",
]
