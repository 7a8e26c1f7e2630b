"""Pytest fixtures for social graph tests.

Every test gets its own in-memory SQLite database and its own builders,
so no data is shared between tests.
"""

import itertools
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from socialgraph.core.security import create_access_token
from socialgraph.db.base import Base
from socialgraph.db.session import get_db
from socialgraph.main import app
from socialgraph.modules.posts.models.post import Post
from socialgraph.modules.user_management.models.user import User

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0)


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every connection in the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Builder for users: make_user("alice", city="Austin")."""
    counter = itertools.count(1)

    def _make(username=None, city=None):
        n = next(counter)
        username = username or f"user{n}"
        user = User(
            id=f"{username}-id",
            username=username,
            display_name=username.title(),
            location_city=city,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_post(db):
    """Builder for posts with explicit timestamps so ordering is deterministic.

    ``age_hours`` counts back from BASE_TIME.
    """
    counter = itertools.count(1)

    def _make(author, age_hours=0.0, likes=0, comments=0, city=None, post_id=None):
        n = next(counter)
        post = Post(
            id=post_id or f"post-{n:03d}",
            author_id=author.id,
            caption=f"post {n} by {author.username}",
            likes_count=likes,
            comments_count=comments,
            location_city=city,
            created_at=BASE_TIME - timedelta(hours=age_hours),
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the per-test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
