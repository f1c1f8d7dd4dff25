"""Per-user read positions within exchanges."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.db.upsert import insert_for
from forum_stage.models import Exchange, ExchangeView, Post, User
from forum_stage.services.exchanges import ExchangeStore

logger = logging.getLogger(__name__)

__all__ = ["ReadTracker"]


class ReadTracker:
    """Record and query read watermarks.

    A watermark's ``last_index`` is the number of posts the user has seen. It
    never moves backwards: the write itself only replaces a stored index that
    is smaller than the new one, so overlapping page loads cannot regress it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def mark_viewed(
        self,
        user: User,
        exchange: Exchange,
        last_post: Post | None,
        last_index: int,
    ) -> ExchangeView:
        """Advance the user's watermark to ``last_index`` if it is further along."""
        last_index = max(0, int(last_index))
        stmt = insert_for(self.db, ExchangeView).values(
            user_id=user.id,
            exchange_id=exchange.id,
            post_id=last_post.id if last_post is not None else None,
            last_index=last_index,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "exchange_id"],
            set_={
                "post_id": stmt.excluded.post_id,
                "last_index": stmt.excluded.last_index,
            },
            where=ExchangeView.last_index < stmt.excluded.last_index,
        )
        self.db.execute(stmt)
        self.db.commit()
        logger.debug("User %s viewed exchange %s up to %d", user.id, exchange.id, last_index)
        return self.watermark(user, exchange)  # type: ignore[return-value]

    def mark_as_read(self, user: User, exchange: Exchange) -> ExchangeView:
        """Move the watermark to the newest post of the exchange."""
        last_post = ExchangeStore(self.db).last_post(exchange)
        return self.mark_viewed(user, exchange, last_post, exchange.posts_count)

    def watermark(self, user: User, exchange: Exchange) -> ExchangeView | None:
        stmt = (
            select(ExchangeView)
            .where(ExchangeView.user_id == user.id, ExchangeView.exchange_id == exchange.id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def last_index(self, user: User | None, exchange: Exchange) -> int:
        if user is None:
            return 0
        view = self.watermark(user, exchange)
        return view.last_index if view is not None else 0

    def unread_count(self, user: User | None, exchange: Exchange) -> int:
        """Posts the user has not reached yet; everything is unread without a watermark."""
        return max(0, exchange.posts_count - self.last_index(user, exchange))

    def resume_page(self, user: User | None, exchange: Exchange, per_page: int) -> int:
        """Return the page holding the first unread post."""
        seen = min(self.last_index(user, exchange), max(exchange.posts_count - 1, 0))
        return seen // per_page + 1 if per_page else 1
