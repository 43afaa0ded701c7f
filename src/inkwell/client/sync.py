"""Cached API client that keeps local views consistent with server mutations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from inkwell.client.api import ApiError, BlogApiClient
from inkwell.client.cache import CacheEntry, CacheState, QueryCache, make_key

logger = logging.getLogger(__name__)

POSTS = "posts"
POST = "post"
COMMENTS = "comments"


def _flip_like(post: dict[str, Any]) -> None:
    liked = not post.get("isLiked", False)
    post["isLiked"] = liked
    post["likeCount"] = max(0, int(post.get("likeCount", 0)) + (1 if liked else -1))


def _apply_like_flip(data: dict[str, Any], post_id: int) -> dict[str, Any]:
    if "post" in data:
        _flip_like(data["post"])
    for post in data.get("posts", []):
        if post.get("id") == post_id:
            _flip_like(post)
    return data


class SyncedBlogClient:
    """Reads through a :class:`QueryCache` and reconciles it after writes.

    * Post create/update/delete invalidate every listing page and the post's
      detail entry; a deleted post's entries are evicted.
    * Comment writes invalidate the post's comment pages, its detail entry
      and the listing pages (comment counts change).
    * ``toggle_like`` flips ``isLiked``/``likeCount`` optimistically in every
      cached view of the post, restores the snapshot if the server rejects
      the toggle, and in either case settles and invalidates those views.
    """

    def __init__(self, api: BlogApiClient, cache: QueryCache | None = None) -> None:
        self.api = api
        self.cache = cache if cache is not None else QueryCache()

    def _read(
        self,
        resource: str,
        resource_id: int | None,
        params: Mapping[str, Any],
        fetch: Callable[[], Any],
    ) -> Any:
        key = make_key(resource, resource_id, params)
        entry = self.cache.get(key)
        if entry is not None and not entry.needs_refetch:
            return entry.data
        data = fetch()
        return self.cache.store(key, data).data

    # Reads

    def list_posts(self, **filters: Any) -> dict[str, Any]:
        return self._read(POSTS, None, filters, lambda: self.api.list_posts(**filters))

    def get_post(self, post_id: int) -> dict[str, Any]:
        return self._read(POST, post_id, {}, lambda: self.api.get_post(post_id))

    def list_comments(
        self, post_id: int, *, page: int | None = None, limit: int | None = None
    ) -> dict[str, Any]:
        return self._read(
            COMMENTS,
            post_id,
            {"page": page, "limit": limit},
            lambda: self.api.list_comments(post_id, page=page, limit=limit),
        )

    # Post mutations

    def create_post(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        body = self.api.create_post(payload)
        self.cache.invalidate(POSTS)
        return body

    def update_post(self, post_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        body = self.api.update_post(post_id, payload)
        self.cache.invalidate(POSTS)
        self.cache.invalidate(POST, post_id)
        return body

    def delete_post(self, post_id: int) -> dict[str, Any]:
        body = self.api.delete_post(post_id)
        self.cache.invalidate(POSTS)
        self.cache.evict(POST, post_id)
        self.cache.evict(COMMENTS, post_id)
        return body

    # Likes

    def _views_of(self, post_id: int) -> list[CacheEntry]:
        views: list[CacheEntry] = []
        for entry in self.cache.entries(POST, post_id):
            views.append(entry)
        for entry in self.cache.entries(POSTS):
            if any(post.get("id") == post_id for post in entry.data.get("posts", [])):
                views.append(entry)
        # Only entries holding a server read can take an optimistic change.
        return [e for e in views if e.state in (CacheState.FRESH, CacheState.STALE)]

    def toggle_like(self, post_id: int) -> dict[str, Any]:
        """Toggle the viewer's like with an optimistic local update.

        Raises:
            ApiError: If the server rejects the toggle; cached views are
                restored before the error propagates.
        """
        touched = self._views_of(post_id)
        for entry in touched:
            entry.begin_mutation(lambda data: _apply_like_flip(data, post_id))
        try:
            return self.api.toggle_like(post_id)
        except ApiError:
            logger.info("Like toggle on post %d failed; rolling back", post_id)
            for entry in touched:
                entry.rollback()
            raise
        finally:
            for entry in touched:
                entry.settle()
            self.cache.invalidate(POST, post_id)
            self.cache.invalidate(POSTS)

    # Comment mutations

    def _comments_changed(self, post_id: int) -> None:
        self.cache.invalidate(COMMENTS, post_id)
        self.cache.invalidate(POST, post_id)
        self.cache.invalidate(POSTS)

    def create_comment(
        self, post_id: int, content: str, parent_id: int | None = None
    ) -> dict[str, Any]:
        body = self.api.create_comment(post_id, content, parent_id)
        self._comments_changed(post_id)
        return body

    def update_comment(self, comment_id: int, content: str) -> dict[str, Any]:
        body = self.api.update_comment(comment_id, content)
        self._comments_changed(int(body["comment"]["postId"]))
        return body

    def delete_comment(self, comment_id: int, post_id: int) -> dict[str, Any]:
        body = self.api.delete_comment(comment_id)
        self._comments_changed(post_id)
        return body
