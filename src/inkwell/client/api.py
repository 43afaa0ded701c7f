"""Thin HTTP client for the Inkwell API."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ApiError(RuntimeError):
    """An error response (or transport failure) from the API.

    ``kind`` mirrors the server's error taxonomy (``not_found``,
    ``forbidden``, ...); transport failures use ``network`` with status 0.
    """

    def __init__(self, kind: str, status_code: int, message: str) -> None:
        super().__init__(f"{status_code} {kind}: {message}")
        self.kind = kind
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            kind=str(body.get("kind", "error")),
            status_code=response.status_code,
            message=str(body.get("message", response.reason_phrase)),
        )


def _post_list_params(
    *,
    page: int | None = None,
    limit: int | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    search: str | None = None,
    tags: Sequence[str] | None = None,
    author_id: int | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "page": page,
        "limit": limit,
        "sortBy": sort_by,
        "sortOrder": sort_order,
        "search": search,
        "tags": ",".join(tags) if tags else None,
        "authorId": author_id,
    }
    return {k: v for k, v in params.items() if v is not None}


class BlogApiClient:
    """Synchronous wrapper over the blog endpoints.

    Any ``httpx.Client`` works, including FastAPI's ``TestClient``. Bodies
    are exchanged as the API's camelCase JSON dictionaries.
    """

    def __init__(self, http: httpx.Client, token: str | None = None) -> None:
        self.http = http
        self.token = token

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self.http.request(
                method,
                f"{API_PREFIX}{path}",
                json=json,
                params=params,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError("network", 0, str(exc)) from exc

        if response.is_error:
            raise ApiError.from_response(response)
        body: dict[str, Any] = response.json()
        return body

    # Auth

    def register(self, username: str, email: str, password: str, **names: str) -> dict[str, Any]:
        body = self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password, **names},
        )
        self.token = body["token"]
        return body

    def login(self, email: str, password: str) -> dict[str, Any]:
        body = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = body["token"]
        return body

    # Posts

    def list_posts(self, **filters: Any) -> dict[str, Any]:
        """Fetch a listing page; keyword names follow ``_post_list_params``."""
        return self._request("GET", "/posts", params=_post_list_params(**filters))

    def get_post(self, post_id: int) -> dict[str, Any]:
        return self._request("GET", f"/posts/{post_id}")

    def create_post(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/posts", json=dict(payload))

    def update_post(self, post_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/posts/{post_id}", json=dict(payload))

    def delete_post(self, post_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/posts/{post_id}")

    def toggle_like(self, post_id: int) -> dict[str, Any]:
        return self._request("POST", f"/posts/{post_id}/like")

    # Comments

    def list_comments(
        self, post_id: int, *, page: int | None = None, limit: int | None = None
    ) -> dict[str, Any]:
        params = {k: v for k, v in {"page": page, "limit": limit}.items() if v is not None}
        return self._request("GET", f"/comments/post/{post_id}", params=params)

    def create_comment(
        self, post_id: int, content: str, parent_id: int | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"postId": post_id, "content": content}
        if parent_id is not None:
            payload["parentId"] = parent_id
        return self._request("POST", "/comments", json=payload)

    def update_comment(self, comment_id: int, content: str) -> dict[str, Any]:
        return self._request("PUT", f"/comments/{comment_id}", json={"content": content})

    def delete_comment(self, comment_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/comments/{comment_id}")
