# tests/services/test_comment_service.py
"""Service-level tests for comment trees and comment mutations."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from inkwell.core.errors import ForbiddenError, NotFoundError
from inkwell.models import Comment
from inkwell.schemas.comment import CommentCreate
from inkwell.services import comment_service
from inkwell.services.pagination import PageWindow


def _window(page: int = 1, limit: int = 20) -> PageWindow:
    return PageWindow(page=page, limit=limit)


def _comment_rows(db_session, post_id: int) -> int:
    return db_session.execute(
        select(func.count(Comment.id)).where(Comment.post_id == post_id)
    ).scalar_one()


def test_first_page_of_25_top_level_comments(
    db_session, test_post, other_user, make_comment
) -> None:
    for i in range(25):
        make_comment(test_post, other_user, f"c{i}")

    page = comment_service.get_comments_for_post(db_session, test_post.id, _window())
    assert len(page.comments) == 20
    assert page.pagination.has_next_page is True
    assert page.pagination.total_items == 25
    assert [c.content for c in page.comments[:3]] == ["c0", "c1", "c2"]


def test_replies_do_not_count_towards_page(db_session, test_post, other_user, make_comment) -> None:
    top = make_comment(test_post, other_user, "top")
    for i in range(30):
        make_comment(test_post, other_user, f"r{i}", parent=top)

    page = comment_service.get_comments_for_post(db_session, test_post.id, _window(limit=1))
    assert page.pagination.total_items == 1
    assert page.pagination.has_next_page is False
    assert [r.content for r in page.comments[0].replies] == [f"r{i}" for i in range(30)]


def test_comment_page_round_trips_are_constant(
    db_session, test_post, make_user, make_comment, query_counter
) -> None:
    def _thread() -> None:
        top = make_comment(test_post, make_user(), "top")
        make_comment(test_post, make_user(), "reply", parent=top)
        make_comment(test_post, make_user(), "reply", parent=top)

    _thread()
    with query_counter() as small:
        comment_service.get_comments_for_post(db_session, test_post.id, _window())

    for _ in range(6):
        _thread()
    with query_counter() as large:
        page = comment_service.get_comments_for_post(db_session, test_post.id, _window())

    assert small.count == large.count
    assert len(page.comments) == 7
    assert all(len(thread.replies) == 2 for thread in page.comments)


def test_comments_for_missing_post(db_session) -> None:
    with pytest.raises(NotFoundError):
        comment_service.get_comments_for_post(db_session, 4040, _window())


def test_assemble_comment_tree_groups_replies(
    db_session, test_post, test_user, other_user, make_comment
) -> None:
    first = make_comment(test_post, test_user, "first")
    second = make_comment(test_post, other_user, "second")
    reply = make_comment(test_post, other_user, "reply to first", parent=first)
    stray = make_comment(test_post, other_user, "reply to second", parent=second)

    threads = comment_service.assemble_comment_tree(
        [first, second],
        [reply, stray],
        {test_user.id: test_user, other_user.id: other_user},
    )
    assert [t.content for t in threads] == ["first", "second"]
    assert [r.content for r in threads[0].replies] == ["reply to first"]
    assert threads[0].replies[0].author.username == "bob"
    assert [r.content for r in threads[1].replies] == ["reply to second"]


def test_create_reply_to_reply_is_normalized(
    db_session, test_post, test_user, other_user, make_comment
) -> None:
    top = make_comment(test_post, other_user, "top")
    middle = make_comment(test_post, test_user, "middle", parent=top)

    record = comment_service.create_comment(
        db_session,
        other_user.id,
        CommentCreate(content="deep", post_id=test_post.id, parent_id=middle.id),
    )
    assert record.parent_id == top.id

    tree = comment_service.load_comment_tree(db_session, test_post.id)
    assert len(tree) == 1
    assert [r.content for r in tree[0].replies] == ["middle", "deep"]


def test_parent_on_other_post_creates_nothing(
    db_session, test_post, test_user, other_user, make_post, make_comment
) -> None:
    elsewhere = make_post(other_user, "Elsewhere")
    foreign = make_comment(elsewhere, other_user)

    with pytest.raises(NotFoundError):
        comment_service.create_comment(
            db_session,
            test_user.id,
            CommentCreate(content="misplaced", post_id=test_post.id, parent_id=foreign.id),
        )
    assert _comment_rows(db_session, test_post.id) == 0
    assert _comment_rows(db_session, elsewhere.id) == 1


def test_missing_parent_is_not_found(db_session, test_post, test_user) -> None:
    with pytest.raises(NotFoundError):
        comment_service.create_comment(
            db_session,
            test_user.id,
            CommentCreate(content="hello", post_id=test_post.id, parent_id=777),
        )


def test_update_comment_by_non_author_changes_nothing(
    db_session, test_post, test_user, other_user, make_comment
) -> None:
    comment = make_comment(test_post, test_user, "original")

    with pytest.raises(ForbiddenError):
        comment_service.update_comment(db_session, other_user.id, comment.id, "edited")

    db_session.expire_all()
    assert db_session.get(Comment, comment.id).content == "original"


def test_delete_comment_by_non_author_changes_nothing(
    db_session, test_post, test_user, other_user, make_comment
) -> None:
    comment = make_comment(test_post, test_user)
    with pytest.raises(ForbiddenError):
        comment_service.delete_comment(db_session, other_user.id, comment.id)
    assert _comment_rows(db_session, test_post.id) == 1


def test_delete_comment_returns_post_id(db_session, test_post, test_user, make_comment) -> None:
    comment = make_comment(test_post, test_user)
    assert comment_service.delete_comment(db_session, test_user.id, comment.id) == test_post.id
    assert _comment_rows(db_session, test_post.id) == 0


def test_update_missing_comment(db_session, test_user) -> None:
    with pytest.raises(NotFoundError):
        comment_service.update_comment(db_session, test_user.id, 31337, "x")
