# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from forum_stage.core.security import create_access_token
from forum_stage.db.session import Base
from forum_stage.db.session import get_db as app_get_session
from forum_stage.main import app as fastapi_app
from forum_stage.models import Category, Exchange, User
from forum_stage.services.categories import CategoryStore
from forum_stage.services.exchanges import ExchangeStore

TEST_DB_URL = "sqlite://"

_USERNAME_COUNTER = count(1)
_CATEGORY_COUNTER = count(1)


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
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
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
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with the given rank flags."""

    def _make_user(username: str | None = None, **flags: bool) -> User:
        user = User(username=username or f"user{next(_USERNAME_COUNTER)}", **flags)
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def member(make_user: Callable[..., User]) -> User:
    """A regular, untrusted member."""
    return make_user("member")


@pytest.fixture()
def other_member(make_user: Callable[..., User]) -> User:
    return make_user("other")


@pytest.fixture()
def trusted_user(make_user: Callable[..., User]) -> User:
    return make_user("trusted", trusted=True)


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("admin", admin=True)


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user("moderator", moderator=True)


def _auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""
    return _auth_headers


@pytest.fixture()
def member_auth(member: User) -> dict[str, str]:
    return _auth_headers(member)


@pytest.fixture()
def make_category(db_session: Session) -> Callable[..., Category]:
    def _make_category(name: str | None = None, trusted: bool = False) -> Category:
        result = CategoryStore(db_session).create(
            name or f"Category {next(_CATEGORY_COUNTER)}",
            trusted=trusted,
        )
        assert isinstance(result, Category)
        return result

    return _make_category


@pytest.fixture()
def category(make_category: Callable[..., Category]) -> Category:
    return make_category("General")


@pytest.fixture()
def trusted_category(make_category: Callable[..., Category]) -> Category:
    return make_category("Back Room", trusted=True)


@pytest.fixture()
def make_discussion(db_session: Session) -> Callable[..., Exchange]:
    def _make_discussion(poster: User, category: Category, title: str = "Hello", body: str = "First!") -> Exchange:
        result = ExchangeStore(db_session).create(
            "discussion",
            {"title": title, "body": body, "category_id": category.id},
            poster,
        )
        assert isinstance(result, Exchange)
        return result

    return _make_discussion


@pytest.fixture()
def discussion(make_discussion: Callable[..., Exchange], member: User, category: Category) -> Exchange:
    return make_discussion(member, category)


@pytest.fixture()
def conversation(db_session: Session, member: User, other_member: User) -> Exchange:
    """A conversation started by ``member`` with ``other_member`` as recipient."""
    result = ExchangeStore(db_session).create(
        "conversation",
        {"title": "Private", "body": "Just us"},
        member,
        recipient=other_member,
    )
    assert isinstance(result, Exchange)
    return result


@pytest.fixture()
def add_posts(db_session: Session) -> Callable[[Exchange, User, int], None]:
    def _add_posts(exchange: Exchange, author: User, n: int) -> None:
        store = ExchangeStore(db_session)
        for i in range(n):
            store.add_post(exchange, author, f"Reply {i}")

    return _add_posts
