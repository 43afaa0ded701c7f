# tests/v1/test_auth.py
"""Tests for authentication and profile endpoints."""

from __future__ import annotations

from fastapi import status
from sqlalchemy import select

from inkwell.core.security import decode_access_token
from inkwell.models import User


def _register_payload(**overrides: str) -> dict[str, str]:
    payload = {
        "username": "carol_w",
        "email": "carol@example.com",
        "password": "s3cret-pass",
        "firstName": "Carol",
    }
    payload.update(overrides)
    return payload


def test_register_user_success(client, db_session) -> None:
    """Registration returns the account and a usable token, never the password."""
    response = client.post("/api/v1/auth/register", json=_register_payload())
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()

    assert data["message"] == "User registered successfully"
    assert data["user"]["username"] == "carol_w"
    assert data["user"]["firstName"] == "Carol"
    assert "password" not in data["user"]
    assert "passwordHash" not in data["user"]

    claims = decode_access_token(data["token"])
    assert claims is not None
    assert claims["sub"] == str(data["user"]["id"])
    assert claims["username"] == "carol_w"

    stored = db_session.execute(select(User).where(User.username == "carol_w")).scalar_one()
    assert stored.password_hash != "s3cret-pass"
    assert stored.password_hash.startswith("$2")


def test_register_duplicate_username_conflicts(client, test_user) -> None:
    response = client.post(
        "/api/v1/auth/register",
        json=_register_payload(username=test_user.username),
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "conflict"


def test_register_rejects_bad_username(client) -> None:
    response = client.post("/api/v1/auth/register", json=_register_payload(username="no spaces!"))
    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "validation_error"
    assert any(detail["field"] == "username" for detail in body["details"])


def test_register_rejects_short_password(client) -> None:
    response = client.post("/api/v1/auth/register", json=_register_payload(password="123"))
    assert response.status_code == 422


def test_login_success_sets_last_login(client, test_user, user_password) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": user_password},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["lastLogin"] is not None
    assert data["token"]


def test_login_wrong_password(client, test_user) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": "not-the-password"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {
        "kind": "unauthenticated",
        "message": "Invalid credentials",
        "details": [],
    }


def test_login_unknown_email(client, user_password) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": user_password},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_profile_requires_token(client) -> None:
    response = client.get("/api/v1/auth/profile")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["kind"] == "unauthenticated"


def test_profile_rejects_garbage_token(client) -> None:
    response = client.get("/api/v1/auth/profile", headers={"Authorization": "Bearer nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_profile_lists_own_posts(client, auth_token, test_post) -> None:
    response = client.get("/api/v1/auth/profile", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["username"] == "alice"
    assert [p["title"] for p in user["posts"]] == ["Test post"]


def test_update_profile(client, auth_token) -> None:
    response = client.put(
        "/api/v1/auth/profile",
        json={"firstName": "Alicia", "avatar": "/uploads/post-images/a.png"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["firstName"] == "Alicia"
    assert user["lastName"] == "Writer"
    assert user["avatar"] == "/uploads/post-images/a.png"


def test_deactivated_account_token_is_rejected(
    client, auth_token, test_user, user_password
) -> None:
    response = client.delete("/api/v1/auth/profile", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK

    response = client.get("/api/v1/auth/profile", headers=auth_token)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.post(
        "/api/v1/auth/login",
        json={"email": test_user.email, "password": user_password},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
