# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from townsquare.core.security import Actor, create_access_token
from townsquare.core.settings import Settings
from townsquare.db.session import Base
from townsquare.db.session import get_db as app_get_session
from townsquare.main import app as fastapi_app
from townsquare.models import Channel, ChannelMembership, Comment, Location, Post, UserProfile
from townsquare.models.channel import ROLE_ADMIN
from townsquare.services.store import EntityStore

TEST_DB_URL = "sqlite://"
ADMIN_GROUPS = frozenset({"admins"})

_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit; empty every table so each test starts clean.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def store(db_session: Session) -> EntityStore:
    return EntityStore(db_session)


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


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return Settings()  # type: ignore[call-arg]


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., UserProfile]:
    """Return a factory that persists a profile and returns it."""

    def _make_user(username: str | None = None) -> UserProfile:
        n = next(_USER_COUNTER)
        username = username or f"user{n}"
        profile = UserProfile(
            id=f"sub-{username}",
            username=username,
            email=f"{username}@example.com",
            display_name=username.title(),
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return the primary test user."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return a second persisted user."""
    return make_user("bob")


@pytest.fixture()
def actor(test_user: UserProfile) -> Actor:
    return Actor(user_id=test_user.id)


@pytest.fixture()
def other_actor(other_user: UserProfile) -> Actor:
    return Actor(user_id=other_user.id)


@pytest.fixture()
def admin_actor(make_user: Callable[..., UserProfile]) -> Actor:
    admin = make_user("root")
    return Actor(user_id=admin.id, groups=ADMIN_GROUPS)


def _bearer(user_id: str, groups: frozenset[str] = frozenset()) -> dict[str, str]:
    token = create_access_token(user_id, groups)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for() -> Callable[..., dict[str, str]]:
    """Return a factory building bearer headers for any subject and groups."""
    return _bearer


@pytest.fixture()
def auth_token(test_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return _bearer(test_user.id)


@pytest.fixture()
def other_auth_token(other_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return _bearer(other_user.id)


@pytest.fixture()
def location(db_session: Session, test_user: UserProfile) -> Location:
    """Create a default test location owned by the primary user."""
    location = Location(name="Ann Arbor", slug="ann-arbor", state="MI", created_by=test_user.id)
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture()
def channel(db_session: Session, location: Location, test_user: UserProfile) -> Channel:
    """Create a channel in ``location`` with the primary user as its admin."""
    channel = Channel(
        location_id=location.id,
        name="Politics",
        slug="politics",
        created_by=test_user.id,
        member_count=1,
    )
    db_session.add(channel)
    db_session.flush()
    db_session.add(ChannelMembership(user_id=test_user.id, channel_id=channel.id, role=ROLE_ADMIN))
    db_session.commit()
    return channel


@pytest.fixture()
def make_post(db_session: Session, channel: Channel, test_user: UserProfile) -> Callable[..., Post]:
    """Return a factory for text posts in ``channel`` with explicit ordering fields.

    Active posts are counted in the channel's ``post_count`` as the create path does.
    """

    def _make_post(
        title: str = "Test post",
        *,
        score: int = 0,
        created_at: datetime | None = None,
        author: UserProfile | None = None,
        target_channel: Channel | None = None,
        is_active: bool = True,
    ) -> Post:
        target = target_channel or channel
        upvotes, downvotes = (score, 0) if score >= 0 else (0, -score)
        post = Post(
            location_id=target.location_id,
            channel_id=target.id,
            author_id=(author or test_user).id,
            title=title,
            type="text",
            body="Test post content",
            upvotes=upvotes,
            downvotes=downvotes,
            score=score,
            is_active=is_active,
        )
        if created_at is not None:
            post.created_at = created_at
        if is_active:
            target.post_count += 1
        db_session.add(post)
        db_session.commit()
        return post

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post]) -> Post:
    """Create a baseline post for tests."""
    return make_post()


@pytest.fixture()
def make_comment(db_session: Session, test_post: Post, test_user: UserProfile) -> Callable[..., Comment]:
    """Return a factory for comments on ``test_post``; active ones bump ``comment_count``."""

    def _make_comment(
        content: str = "A comment",
        *,
        parent: Comment | None = None,
        score: int = 0,
        created_at: datetime | None = None,
        author: UserProfile | None = None,
        is_active: bool = True,
    ) -> Comment:
        upvotes, downvotes = (score, 0) if score >= 0 else (0, -score)
        comment = Comment(
            post_id=test_post.id,
            author_id=(author or test_user).id,
            parent_comment_id=parent.id if parent else None,
            content=content,
            upvotes=upvotes,
            downvotes=downvotes,
            score=score,
            is_active=is_active,
        )
        if created_at is not None:
            comment.created_at = created_at
        if is_active:
            test_post.comment_count += 1
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make_comment
