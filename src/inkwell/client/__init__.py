"""Python client for the Inkwell API with an optimistic query cache."""

from .api import ApiError, BlogApiClient
from .cache import CacheEntry, CacheKey, CacheState, CacheStateError, QueryCache, make_key
from .sync import SyncedBlogClient

__all__ = [
    "ApiError",
    "BlogApiClient",
    "CacheEntry",
    "CacheKey",
    "CacheState",
    "CacheStateError",
    "QueryCache",
    "SyncedBlogClient",
    "make_key",
]
