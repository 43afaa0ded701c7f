# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "inkwell-test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="inkwell-uploads-"))

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from inkwell.core.security import hash_password  # noqa: E402
from inkwell.core.settings import settings  # noqa: E402
from inkwell.db.session import Base, enable_sqlite_foreign_keys  # noqa: E402
from inkwell.db.session import get_db as app_get_session  # noqa: E402
from inkwell.main import app as fastapi_app  # noqa: E402
from inkwell.models import Comment, Like, Post, User  # noqa: E402
from inkwell.services.user_service import issue_token  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse"

_USER_COUNTER = count(1)
_BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
_CLOCK = count(1)


def _tick() -> datetime:
    """Strictly increasing timestamps so ordering assertions are deterministic."""
    return _BASE_TIME + timedelta(seconds=next(_CLOCK))


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    session = Session(bind=engine, autoflush=False)
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so every test starts from empty tables.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def upload_dir(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Point the storage backend at a per-test directory."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.fixture()
def user_password() -> str:
    """Plain-text password every factory-made user logs in with."""
    return TEST_PASSWORD


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating committed users with password ``TEST_PASSWORD``."""

    def _make(username: str | None = None, **fields: Any) -> User:
        n = next(_USER_COUNTER)
        username = username or f"writer{n}"
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password_hash=hash_password(fields.pop("password", TEST_PASSWORD)),
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return a persisted test user."""
    return make_user("alice", first_name="Alice", last_name="Writer")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user("bob")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {issue_token(test_user)}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {issue_token(other_user)}"}


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Factory creating committed posts; published unless told otherwise."""

    def _make(author: User, title: str = "A post", **fields: Any) -> Post:
        tags = fields.pop("tags", [])
        published = fields.pop("is_published", True)
        created = fields.pop("created_at", _tick())
        post = Post(
            title=title,
            content=fields.pop("content", f"Body of {title}"),
            author_id=author.id,
            is_published=published,
            published_at=created if published else None,
            created_at=created,
            updated_at=created,
            view_count=fields.pop("view_count", 0),
            **fields,
        )
        post.tags = list(tags)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make


@pytest.fixture()
def test_post(make_post: Callable[..., Post], test_user: User) -> Post:
    """Create a baseline post for tests."""
    return make_post(test_user, "Test post", content="Test post content", tags=["python"])


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make(
        post: Post,
        author: User,
        content: str = "Nice post",
        parent: Comment | None = None,
    ) -> Comment:
        created = _tick()
        comment = Comment(
            content=content,
            post_id=post.id,
            author_id=author.id,
            parent_id=parent.id if parent is not None else None,
            created_at=created,
            updated_at=created,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make


@pytest.fixture()
def make_like(db_session: Session) -> Callable[[User, Post], Like]:
    def _make(user: User, post: Post) -> Like:
        like = Like(user_id=user.id, post_id=post.id)
        db_session.add(like)
        db_session.commit()
        db_session.refresh(like)
        return like

    return _make


class QueryCounter:
    """Counts statements sent to the database while active."""

    def __init__(self) -> None:
        self.count = 0
        self.statements: list[str] = []

    def record(self, statement: str) -> None:
        self.count += 1
        self.statements.append(statement)


@pytest.fixture()
def query_counter(engine: Engine, db_session: Session) -> Callable[[], Any]:
    """Context manager factory recording every round trip to the store.

    The session's identity map is expired on entry so counts do not depend
    on what earlier fixtures happened to load.
    """

    @contextmanager
    def _count() -> Iterator[QueryCounter]:
        db_session.expire_all()
        counter = QueryCounter()

        def _before(conn, cursor, statement, parameters, context, executemany):  # noqa: ANN001
            counter.record(statement)

        event.listen(engine, "before_cursor_execute", _before)
        try:
            yield counter
        finally:
            event.remove(engine, "before_cursor_execute", _before)

    return _count
