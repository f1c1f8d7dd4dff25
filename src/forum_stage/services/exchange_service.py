"""Request-level use cases for discussions and conversations.

Every operation follows the same order: resolve the exchange, check that the
principal may view it, check editability for changes, then act. Lookup and
permission failures raise before anything is written.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.settings import settings
from forum_stage.models import (
    EXCHANGE_KIND_CONVERSATION,
    EXCHANGE_KIND_DISCUSSION,
    Category,
    DiscussionRelationship,
    Exchange,
    Post,
    User,
)
from forum_stage.services import search
from forum_stage.services.categories import CategoryStore
from forum_stage.services.errors import (
    ForbiddenError,
    NoCategoriesError,
    NotFoundError,
    ValidationFailure,
)
from forum_stage.services.exchanges import SORT_POPULAR, SORT_RECENT, ExchangeStore
from forum_stage.services.pagination import Page, paginate_items
from forum_stage.services.read_tracker import ReadTracker
from forum_stage.services.relationships import InviteResult, RelationshipEngine

logger = logging.getLogger(__name__)

__all__ = ["ExchangeForm", "ExchangeService", "ShowResult", "RELATIONSHIP_KINDS"]

RELATIONSHIP_KINDS = ("following", "favorite")


@dataclass
class ShowResult:
    """Everything needed to present one page of an exchange."""

    exchange: Exchange
    posts: Page[Post]
    relationship: DiscussionRelationship | None = None
    participants: list[User] = field(default_factory=list)


@dataclass
class ExchangeForm:
    """Prefilled values for a new or edit form."""

    kind: str
    exchange: Exchange | None = None
    body: str = ""
    category: Category | None = None
    recipient: User | None = None
    categories: list[Category] = field(default_factory=list)


class ExchangeService:
    """Orchestrate stores and engines for each controller action."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.relationships = RelationshipEngine(db)
        self.exchanges = ExchangeStore(db, self.relationships)
        self.categories = CategoryStore(db)
        self.reads = ReadTracker(db)

    # Checks

    def load(self, exchange_id: int | str, principal: User | None) -> Exchange:
        """Resolve an exchange the principal may view.

        Raises:
            NotFoundError: If the id does not resolve.
            ForbiddenError: If the principal may not view it.
        """
        exchange = self.exchanges.find(exchange_id)
        if not self.exchanges.is_viewable_by(exchange, principal):
            raise ForbiddenError("You do not have access to this discussion")
        return exchange

    def load_editable(self, exchange_id: int | str, principal: User | None) -> Exchange:
        exchange = self.load(exchange_id, principal)
        if not self.exchanges.is_editable_by(exchange, principal):
            raise ForbiddenError("You may not edit this discussion")
        return exchange

    def _load_views(self, page: Page[Exchange], principal: User | None) -> Page[Exchange]:
        if principal is not None:
            page.extra["unread"] = {
                exchange.id: self.reads.unread_count(principal, exchange) for exchange in page.items
            }
        return page

    # Listings

    def list_viewable(self, principal: User | None, page: int | str | None = 1) -> Page[Exchange]:
        result = self.exchanges.list_viewable(principal, SORT_RECENT, page)
        return self._load_views(result, principal)

    def list_popular(
        self,
        principal: User | None,
        days: int,
        page: int | str | None = 1,
    ) -> Page[Exchange]:
        """Popular discussions; ``InvalidRangeError`` for windows outside the bounds."""
        result = self.exchanges.list_viewable(principal, SORT_POPULAR, page, days=days)
        return self._load_views(result, principal)

    def search_exchanges(
        self,
        query: str | None,
        principal: User | None,
        page: int | str | None = 1,
    ) -> Page[Exchange]:
        result = search.search_exchanges(self.db, query, principal, page)
        return self._load_views(result, principal)

    def search_posts(
        self,
        exchange_id: int | str,
        query: str | None,
        principal: User | None,
        page: int | str | None = 1,
    ) -> tuple[Exchange, Page[Post]]:
        exchange = self.load(exchange_id, principal)
        return exchange, search.search_posts(self.db, query, exchange, page)

    def _viewable(self, exchanges: Iterable[Exchange], principal: User) -> list[Exchange]:
        return [e for e in exchanges if self.exchanges.is_viewable_by(e, principal)]

    def list_favorites(self, principal: User, page: int | str | None = 1) -> Page[Exchange]:
        items = self._viewable(self.relationships.favorite_discussions(principal), principal)
        return self._load_views(paginate_items(items, page, settings.discussions_per_page), principal)

    def list_following(self, principal: User, page: int | str | None = 1) -> Page[Exchange]:
        items = self._viewable(self.relationships.followed_discussions(principal), principal)
        return self._load_views(paginate_items(items, page, settings.discussions_per_page), principal)

    def list_conversations(self, principal: User, page: int | str | None = 1) -> Page[Exchange]:
        items = self.relationships.conversations(principal)
        return self._load_views(paginate_items(items, page, settings.discussions_per_page), principal)

    # Single exchange

    def get_exchange(
        self,
        exchange_id: int | str,
        principal: User | None,
        page: int | str | None = None,
        context: int | None = None,
    ) -> ShowResult:
        """Return a page of posts and record how far the principal has read.

        Without an explicit page, signed-in users land on their first unread
        post. Viewing a conversation clears its new-posts flag.
        """
        exchange = self.load(exchange_id, principal)
        per_page = settings.posts_per_page
        if page is None:
            page = self.reads.resume_page(principal, exchange, per_page)
        posts = self.exchanges.posts(
            exchange,
            page,
            per_page,
            context=settings.post_context if context is None else context,
        )

        result = ShowResult(exchange=exchange, posts=posts)
        if principal is not None:
            self.reads.mark_viewed(principal, exchange, posts.last, posts.offset + posts.count)
            result.relationship = self.relationships.discussion_relationship(principal, exchange)
        if exchange.kind == EXCHANGE_KIND_CONVERSATION:
            if principal is not None:
                self.relationships.clear_new_posts(exchange, principal)
            result.participants = self.relationships.participants(exchange)
        return result

    def new_exchange(
        self,
        kind: str,
        principal: User,
        category_id: int | str | None = None,
        username: str | None = None,
    ) -> ExchangeForm:
        """Prefill a new exchange form with a category or a recipient."""
        form = ExchangeForm(kind=kind)
        if kind == EXCHANGE_KIND_DISCUSSION:
            form.categories = self._require_categories(principal)
            if category_id is not None:
                category = self.categories.get(category_id)
                if category not in form.categories:
                    raise ForbiddenError("You do not have access to this category")
                form.category = category
        elif username:
            form.recipient = self._user_by_username(username)
        return form

    def _require_categories(self, principal: User) -> list[Category]:
        categories = self.categories.list(principal)
        if not categories:
            raise NoCategoriesError("Can't create a new discussion, no categories have been made!")
        return categories

    def _user_by_username(self, username: str) -> User | None:
        return self.db.execute(select(User).where(User.username == username)).scalar_one_or_none()

    def create_exchange(
        self,
        kind: str,
        attributes: Mapping[str, Any],
        principal: User,
        recipient_id: int | None = None,
    ) -> Exchange | ValidationFailure:
        recipient = None
        if kind == EXCHANGE_KIND_DISCUSSION:
            self._require_categories(principal)
        elif recipient_id is not None:
            recipient = self.db.get(User, recipient_id)
            if recipient is None:
                raise NotFoundError("Recipient not found")
        return self.exchanges.create(kind, attributes, principal, recipient=recipient)

    def edit_exchange(self, exchange_id: int | str, principal: User) -> ExchangeForm:
        exchange = self.load_editable(exchange_id, principal)
        first = self.exchanges.first_post(exchange)
        form = ExchangeForm(kind=exchange.kind, exchange=exchange, body=first.body if first else "")
        if exchange.kind == EXCHANGE_KIND_DISCUSSION:
            form.categories = self.categories.list(principal)
            form.category = self.db.get(Category, exchange.category_id) if exchange.category_id else None
        return form

    def update_exchange(
        self,
        exchange_id: int | str,
        attributes: Mapping[str, Any],
        principal: User,
    ) -> Exchange | ValidationFailure:
        exchange = self.load_editable(exchange_id, principal)
        return self.exchanges.update(exchange, attributes, principal)

    def post_reply(self, exchange_id: int | str, principal: User, body: str | None) -> Post | ValidationFailure:
        exchange = self.load(exchange_id, principal)
        return self.exchanges.add_post(exchange, principal, body)

    # Relationships

    def define_relationship(
        self,
        exchange_id: int | str,
        principal: User,
        kind: str,
        value: bool,
    ) -> DiscussionRelationship:
        """Set the ``following`` or ``favorite`` flag on the principal's relationship."""
        if kind not in RELATIONSHIP_KINDS:
            raise ValueError(f"Unknown relationship kind {kind!r}")
        exchange = self.load(exchange_id, principal)
        if exchange.kind != EXCHANGE_KIND_DISCUSSION:
            raise ForbiddenError("Conversations cannot be followed or favorited")
        return self.relationships.define_discussion_relationship(principal, exchange, **{kind: value})

    def invite_participants(
        self,
        exchange_id: int | str,
        principal: User,
        usernames: str | Iterable[str],
    ) -> tuple[Exchange, InviteResult]:
        """Invite users to a conversation; discussions have no participants."""
        exchange = self.load(exchange_id, principal)
        if exchange.kind != EXCHANGE_KIND_CONVERSATION:
            return exchange, InviteResult()
        return exchange, self.relationships.invite_participants(exchange, usernames)

    def participants(self, exchange: Exchange) -> list[User]:
        return self.relationships.participants(exchange)

    def remove_participant(self, exchange_id: int | str, principal: User) -> bool:
        """Take the principal out of a conversation."""
        exchange = self.load(exchange_id, principal)
        if exchange.kind != EXCHANGE_KIND_CONVERSATION:
            return False
        return self.relationships.remove_participant(exchange, principal)

    def mark_as_read(self, exchange_id: int | str, principal: User) -> Exchange:
        exchange = self.load(exchange_id, principal)
        self.reads.mark_as_read(principal, exchange)
        return exchange
