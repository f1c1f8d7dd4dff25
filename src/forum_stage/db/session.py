"""Engine, session factory and the request-scoped session dependency."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from forum_stage.core.settings import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Models register their tables on Base.metadata at import time.
import forum_stage.models  # noqa: E402,F401


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shared across FastAPI's worker threads."""
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if _is_sqlite(url):
        options["connect_args"] = {"check_same_thread": False}
    new_engine = create_engine(url, **options)
    if _is_sqlite(url):
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a session per request, rolling back whatever a failed request left open."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables() -> None:
    """Create all tables directly from the model metadata."""
    Base.metadata.create_all(bind=engine)
    logger.debug("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


def drop_tables() -> None:
    Base.metadata.drop_all(bind=engine)
