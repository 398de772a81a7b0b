"""Shared test fixtures for sqla-scope tests."""

from __future__ import annotations

import pytest
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, create_engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)

from sqla_scope.config._config import _reset_global_config
from sqla_scope.config._settings import _reset_settings
from sqla_scope.schema._schema import Schema

# ---------------------------------------------------------------------------
# Test models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))

    users: Mapped[list[User]] = relationship("User", back_populates="organization")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(50), default="viewer")
    org_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), nullable=True)

    organization: Mapped[Organization | None] = relationship(
        "Organization", back_populates="users"
    )
    posts: Mapped[list[Post]] = relationship("Post", back_populates="user")


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(50), unique=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    user: Mapped[User] = relationship("User", back_populates="posts")
    comments: Mapped[list[Comment]] = relationship("Comment", back_populates="post")
    tags: Mapped[list[Tag]] = relationship("Tag", secondary="post_tags", back_populates="posts")


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    text: Mapped[str] = mapped_column(String(500), default="")
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"))

    post: Mapped[Post] = relationship("Post", back_populates="comments")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))

    posts: Mapped[list[Post]] = relationship("Post", secondary="post_tags", back_populates="tags")


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id"), primary_key=True),
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_global_state():
    """Reset global config and settings around every test."""
    _reset_global_config()
    _reset_settings()
    yield
    _reset_global_config()
    _reset_settings()


@pytest.fixture(scope="session")
def schema() -> Schema:
    """Schema derived from the test models."""
    return Schema.from_base(Base)


@pytest.fixture()
def engine():
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def session(engine):
    """Provide a transactional session that rolls back after each test."""
    factory = sessionmaker(bind=engine)
    sess = factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


@pytest.fixture()
def sample_data(session: Session) -> dict[str, list]:
    """Seed the database with sample data for testing.

    alice owns posts P123 and P098, bob owns P091; charlie has no posts and
    no organization. Comments 1-2 are on P123, 3 on P098, 4 on P091.
    """
    org = Organization(id=1, name="Acme Corp")
    session.add(org)

    alice = User(id=1, name="Alice", role="admin", org_id=1)
    bob = User(id=2, name="Bob", role="editor", org_id=1)
    charlie = User(id=3, name="Charlie", role="viewer", org_id=None)
    session.add_all([alice, bob, charlie])

    post1 = Post(id=1, slug="P123", title="First", is_published=True, user_id=1)
    post2 = Post(id=2, slug="P098", title="Draft", is_published=False, user_id=1)
    post3 = Post(id=3, slug="P091", title="Bob's", is_published=True, user_id=2)
    session.add_all([post1, post2, post3])

    comments = [
        Comment(id=1, text="nice", post_id=1),
        Comment(id=2, text="agreed", post_id=1),
        Comment(id=3, text="typo", post_id=2),
        Comment(id=4, text="hello", post_id=3),
    ]
    session.add_all(comments)

    session.flush()
    session.expire_all()
    return {
        "users": [alice, bob, charlie],
        "posts": [post1, post2, post3],
        "comments": comments,
        "organizations": [org],
    }
