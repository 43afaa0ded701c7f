"""Mapping and referential-integrity checks for the ORM models."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import attributes

from inkwell.models import Comment, Like, Post, PostTag, User


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert User.__tablename__ == "users"
    assert Post.__tablename__ == "posts"
    assert PostTag.__tablename__ == "post_tags"
    assert Comment.__tablename__ == "comments"
    assert Like.__tablename__ == "likes"


def test_password_column_is_named_password():
    assert "password" in User.__table__.c
    assert hasattr(User, "password_hash")


def test_post_tags_composite_primary_key():
    pk_names = {c.name for c in PostTag.__table__.primary_key}
    assert pk_names == {"post_id", "tag"}


def test_relationships_are_instrumented_attributes():
    rel_attrs = [
        User.posts,
        User.comments,
        User.likes,
        Post.author,
        Post.comments,
        Post.likes,
        Post.tag_rows,
        Comment.parent,
        Comment.replies,
    ]
    for a in rel_attrs:
        assert isinstance(a, attributes.InstrumentedAttribute)


def test_like_is_unique_per_user_and_post(db_session, test_user, test_post, make_like):
    make_like(test_user, test_post)
    db_session.add(Like(user_id=test_user.id, post_id=test_post.id))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_deleting_post_cascades_to_children(
    db_session, test_user, other_user, test_post, make_comment, make_like
):
    top = make_comment(test_post, other_user)
    make_comment(test_post, test_user, "reply", parent=top)
    make_like(other_user, test_post)
    post_id = test_post.id

    db_session.delete(test_post)
    db_session.commit()

    for model in (Comment, Like, PostTag):
        remaining = db_session.execute(
            select(func.count()).select_from(model).where(model.post_id == post_id)
        ).scalar_one()
        assert remaining == 0


def test_deleting_top_level_comment_removes_replies(db_session, test_user, test_post, make_comment):
    top = make_comment(test_post, test_user)
    make_comment(test_post, test_user, "reply", parent=top)

    db_session.delete(top)
    db_session.commit()

    total = db_session.execute(select(func.count(Comment.id))).scalar_one()
    assert total == 0


def test_tags_proxy_reads_sorted(db_session, make_post, test_user):
    post = make_post(test_user, tags=["zeta", "alpha"])
    db_session.expire_all()
    assert list(post.tags) == ["alpha", "zeta"]
