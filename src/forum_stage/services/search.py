"""Plain substring search over exchange titles and post bodies."""
from __future__ import annotations

from sqlalchemy.orm import Session

from forum_stage.core.settings import settings
from forum_stage.models import Exchange, Post, User
from forum_stage.services.errors import NoQueryError
from forum_stage.services.exchanges import ExchangeStore
from forum_stage.services.pagination import Page, paginate

__all__ = ["require_query", "search_exchanges", "search_posts"]


def require_query(query: str | None) -> str:
    """Return the stripped query term.

    Raises:
        NoQueryError: If no term was given.
    """
    term = (query or "").strip()
    if not term:
        raise NoQueryError("No query specified!")
    return term


def _pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_exchanges(
    db: Session,
    query: str | None,
    principal: User | None,
    page: int | str | None = 1,
) -> Page[Exchange]:
    """Search titles of discussions the principal may view."""
    term = require_query(query)
    stmt = (
        ExchangeStore(db)
        .viewable_discussions(principal)
        .where(Exchange.title.ilike(_pattern(term), escape="\\"))
        .order_by(Exchange.last_post_at.desc(), Exchange.id.desc())
    )
    return paginate(db, stmt, page, settings.discussions_per_page)


def search_posts(
    db: Session,
    query: str | None,
    exchange: Exchange,
    page: int | str | None = 1,
) -> Page[Post]:
    """Search post bodies within one exchange, oldest first."""
    term = require_query(query)
    stmt = (
        ExchangeStore(db)
        .posts_query(exchange)
        .where(Post.body.ilike(_pattern(term), escape="\\"))
    )
    return paginate(db, stmt, page, settings.posts_per_page)
