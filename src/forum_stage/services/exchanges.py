"""Persistence, lookup and access predicates for discussions and conversations."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from forum_stage.core.settings import settings
from forum_stage.db.time import utcnow
from forum_stage.models import (
    EXCHANGE_KIND_CONVERSATION,
    EXCHANGE_KIND_DISCUSSION,
    Category,
    Exchange,
    Post,
    User,
)
from forum_stage.services.errors import (
    ForbiddenError,
    InvalidRangeError,
    NotFoundError,
    ValidationFailure,
)
from forum_stage.services.pagination import Page, paginate
from forum_stage.services.relationships import RelationshipEngine
from forum_stage.services.trust import TrustPolicy
from forum_stage.utils.slugs import parse_param

logger = logging.getLogger(__name__)

__all__ = [
    "EXCHANGE_KINDS",
    "MODERATOR_ATTRIBUTES",
    "SORT_POPULAR",
    "SORT_RECENT",
    "ExchangeStore",
]

EXCHANGE_KINDS = (EXCHANGE_KIND_DISCUSSION, EXCHANGE_KIND_CONVERSATION)
SORT_RECENT = "recent"
SORT_POPULAR = "popular"

# Attributes only moderators may set; dropped from everyone else's input.
MODERATOR_ATTRIBUTES = frozenset({"sticky", "closed"})
USER_ATTRIBUTES = frozenset({"title", "body", "category_id", "nsfw"})


class ExchangeStore:
    """Load, filter, create and update exchanges.

    Visibility is decided here for both kinds: discussions through
    ``TrustPolicy``, conversations through membership alone.
    """

    def __init__(self, db: Session, relationships: RelationshipEngine | None = None) -> None:
        self.db = db
        self.relationships = relationships or RelationshipEngine(db)

    # Lookup

    def find(self, exchange_id: int | str) -> Exchange:
        """Return an exchange by id or humanized param.

        Raises:
            NotFoundError: If no exchange has that id.
        """
        try:
            pk = parse_param(exchange_id)
        except ValueError as err:
            raise NotFoundError("Discussion not found") from err
        exchange = self.db.get(Exchange, pk)
        if exchange is None:
            raise NotFoundError("Discussion not found")
        return exchange

    def posts_query(self, exchange: Exchange) -> Select[Any]:
        return select(Post).where(Post.exchange_id == exchange.id).order_by(Post.id)

    def posts(self, exchange: Exchange, page: int | str | None, per_page: int, context: int = 0) -> Page[Post]:
        return paginate(
            self.db,
            self.posts_query(exchange),
            page,
            per_page,
            context=context,
            total=exchange.posts_count,
        )

    def first_post(self, exchange: Exchange) -> Post | None:
        return self.db.execute(self.posts_query(exchange).limit(1)).scalar_one_or_none()

    def last_post(self, exchange: Exchange) -> Post | None:
        stmt = select(Post).where(Post.exchange_id == exchange.id).order_by(Post.id.desc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    # Access

    def is_viewable_by(self, exchange: Exchange, principal: User | None) -> bool:
        if exchange.kind == EXCHANGE_KIND_CONVERSATION:
            return self.relationships.is_participant(exchange, principal)
        return TrustPolicy.can_view(principal, exchange)

    def is_editable_by(self, exchange: Exchange, principal: User | None) -> bool:
        return TrustPolicy.can_edit(principal, exchange)

    # Listings

    def viewable_discussions(self, principal: User | None) -> Select[Any]:
        return select(Exchange).where(
            Exchange.kind == EXCHANGE_KIND_DISCUSSION,
            TrustPolicy.viewable_clause(principal, Exchange.trusted),
        )

    def check_popular_days(self, days: int) -> int:
        """Return ``days`` when inside the popular window bounds.

        Raises:
            InvalidRangeError: Carrying the default window as the corrected value.
        """
        low, high = settings.popular_min_days, settings.popular_max_days
        if not low <= days <= high:
            raise InvalidRangeError(
                "days",
                days,
                settings.popular_default_days,
                f"Popular window must be between {low} and {high} days",
            )
        return days

    def list_viewable(
        self,
        principal: User | None,
        sort: str = SORT_RECENT,
        page: int | str | None = 1,
        days: int | None = None,
        per_page: int | None = None,
    ) -> Page[Exchange]:
        """Return one page of discussions the principal may view.

        ``recent`` puts sticky discussions first, then the latest activity.
        ``popular`` ranks by posts created in the last ``days`` days.
        """
        per_page = per_page or settings.discussions_per_page
        if sort == SORT_POPULAR:
            days = self.check_popular_days(settings.popular_default_days if days is None else days)
            since = utcnow() - timedelta(days=days)
            activity = (
                select(Post.exchange_id, func.count(Post.id).label("recent_posts"))
                .where(Post.created_at >= since)
                .group_by(Post.exchange_id)
                .subquery()
            )
            stmt = (
                self.viewable_discussions(principal)
                .join(activity, activity.c.exchange_id == Exchange.id)
                .order_by(activity.c.recent_posts.desc(), Exchange.last_post_at.desc(), Exchange.id.desc())
            )
            result = paginate(self.db, stmt, page, per_page)
            result.extra["days"] = days
            return result
        if sort != SORT_RECENT:
            raise ValueError(f"Unknown sort {sort!r}")
        stmt = self.viewable_discussions(principal).order_by(
            Exchange.sticky.desc(),
            Exchange.last_post_at.desc(),
            Exchange.id.desc(),
        )
        return paginate(self.db, stmt, page, per_page)

    # Writes

    def _resolve_category(self, value: Any) -> Category | None:
        """Load the category fresh, holding its row lock until this write commits."""
        if value in (None, ""):
            return None
        try:
            pk = parse_param(value)
        except ValueError:
            return None
        return self.db.get(Category, pk, with_for_update=True, populate_existing=True)

    @staticmethod
    def _category_trust(category: Category) -> Any:
        """The category flag as read by the writing statement itself."""
        return select(Category.trusted).where(Category.id == category.id).scalar_subquery()

    def permitted_attributes(self, attributes: Mapping[str, Any], principal: User) -> dict[str, Any]:
        """Drop attributes the principal is not allowed to set."""
        allowed = USER_ATTRIBUTES | (MODERATOR_ATTRIBUTES if principal.is_moderator else frozenset())
        return {key: value for key, value in attributes.items() if key in allowed}

    def _validate(
        self,
        kind: str,
        values: Mapping[str, Any],
        principal: User,
    ) -> tuple[ValidationFailure, Category | None]:
        failure = ValidationFailure(values=dict(values))
        if not (values.get("title") or "").strip():
            failure.add("title", "can't be blank")
        if not (values.get("body") or "").strip():
            failure.add("body", "can't be blank")

        category = None
        if kind == EXCHANGE_KIND_DISCUSSION:
            category = self._resolve_category(values.get("category_id"))
            if category is None:
                failure.add("category_id", "must be a valid category")
            elif not TrustPolicy.can_view(principal, category):
                failure.add("category_id", "is not available")
        return failure, category

    def create(
        self,
        kind: str,
        attributes: Mapping[str, Any],
        poster: User,
        recipient: User | None = None,
    ) -> Exchange | ValidationFailure:
        """Create a discussion or conversation with its first post.

        Nothing is written when validation fails. A conversation's poster
        joins it straight away; an explicit recipient joins with unread posts.
        """
        if kind not in EXCHANGE_KINDS:
            raise ValueError(f"Unknown exchange kind {kind!r}")
        values = self.permitted_attributes(attributes, poster)
        failure, category = self._validate(kind, values, poster)
        if failure:
            return failure

        now = utcnow()
        exchange = Exchange(
            kind=kind,
            title=values["title"].strip(),
            category_id=category.id if category is not None else None,
            trusted=self._category_trust(category) if category is not None else False,
            sticky=bool(values.get("sticky", False)),
            closed=bool(values.get("closed", False)),
            nsfw=bool(values.get("nsfw", False)),
            poster_id=poster.id,
            last_poster_id=poster.id,
            posts_count=1,
            created_at=now,
            last_post_at=now,
        )
        self.db.add(exchange)
        self.db.flush()
        self.db.add(Post(exchange_id=exchange.id, user_id=poster.id, body=values["body"], created_at=now))

        if kind == EXCHANGE_KIND_CONVERSATION:
            self.relationships.add_participant(exchange, poster, new_posts=False)
            if recipient is not None and recipient.id != poster.id:
                self.relationships.add_participant(exchange, recipient, new_posts=True)

        self.db.commit()
        self.db.refresh(exchange)
        logger.info("User %s created %s %s", poster.id, kind, exchange.id)
        return exchange

    def update(
        self,
        exchange: Exchange,
        attributes: Mapping[str, Any],
        principal: User,
    ) -> Exchange | ValidationFailure:
        """Apply attribute changes; the caller has already checked editability.

        A body change rewrites the first post. Moving a discussion to another
        category picks up that category's trust flag.
        """
        changes = self.permitted_attributes(attributes, principal)
        current = {"title": exchange.title, "category_id": exchange.category_id}
        if "body" not in changes:
            current["body"] = self._first_body(exchange)
        merged = {**current, **changes}
        failure, category = self._validate(exchange.kind, merged, principal)
        if failure:
            failure.values = {**dict(attributes), "id": exchange.id}
            return failure

        exchange.title = merged["title"].strip()
        if category is not None:
            exchange.category_id = category.id
            exchange.trusted = self._category_trust(category)
        for flag in ("sticky", "closed", "nsfw"):
            if flag in changes:
                setattr(exchange, flag, bool(changes[flag]))
        if "body" in changes:
            first = self.first_post(exchange)
            if first is not None:
                first.body = changes["body"]
        exchange.updated_by_id = principal.id
        self.db.commit()
        self.db.refresh(exchange)
        logger.info("User %s updated exchange %s", principal.id, exchange.id)
        return exchange

    def _first_body(self, exchange: Exchange) -> str:
        first = self.first_post(exchange)
        return first.body if first is not None else ""

    def add_post(self, exchange: Exchange, author: User, body: str | None) -> Post | ValidationFailure:
        """Append a post to the exchange.

        Raises:
            ForbiddenError: If the exchange is closed and the author is no moderator.
        """
        if exchange.closed and not author.is_moderator:
            raise ForbiddenError("This discussion is closed")
        if not (body or "").strip():
            failure = ValidationFailure(values={"body": body})
            failure.add("body", "can't be blank")
            return failure

        now = utcnow()
        post = Post(exchange_id=exchange.id, user_id=author.id, body=body, created_at=now)
        self.db.add(post)
        exchange.posts_count = Exchange.posts_count + 1
        exchange.last_post_at = now
        exchange.last_poster_id = author.id
        if exchange.kind == EXCHANGE_KIND_CONVERSATION:
            self.relationships.flag_new_posts(exchange, author)
        self.db.commit()
        self.db.refresh(exchange)
        self.db.refresh(post)
        return post
