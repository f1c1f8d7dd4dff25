"""Follow, favorite and conversation membership rows.

Every definition is a single ``INSERT ... ON CONFLICT`` statement against the
composite primary key, so repeated or concurrent calls converge on one row.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from forum_stage.db.upsert import insert_for
from forum_stage.models import (
    EXCHANGE_KIND_CONVERSATION,
    EXCHANGE_KIND_DISCUSSION,
    ConversationRelationship,
    DiscussionRelationship,
    Exchange,
    User,
)
from forum_stage.services.errors import NotFoundError

logger = logging.getLogger(__name__)

__all__ = ["InviteResult", "RelationshipEngine", "split_usernames"]

_USERNAME_SEPARATOR = re.compile(r"\s*,\s*")


def split_usernames(usernames: str | Iterable[str]) -> list[str]:
    """Accept ``"alice, bob"`` or an iterable of names; drop blanks and duplicates."""
    if isinstance(usernames, str):
        usernames = _USERNAME_SEPARATOR.split(usernames)
    names: list[str] = []
    for name in usernames:
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names


@dataclass
class InviteResult:
    """Outcome of an invite.

    Unknown usernames are skipped rather than failing the whole invite; they
    are reported here so callers can show them.
    """

    invited: list[User] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class RelationshipEngine:
    """Define and query user relationships with exchanges."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # Discussions

    def define_discussion_relationship(
        self,
        user: User,
        discussion: Exchange,
        *,
        following: bool | None = None,
        favorite: bool | None = None,
    ) -> DiscussionRelationship:
        """Create or update the user's relationship with a discussion.

        Only the flags that are passed are written. A new row gets False for
        any flag left out.
        """
        flags = {
            key: value
            for key, value in (("following", following), ("favorite", favorite))
            if value is not None
        }
        stmt = insert_for(self.db, DiscussionRelationship).values(
            user_id=user.id,
            discussion_id=discussion.id,
            following=bool(following),
            favorite=bool(favorite),
        )
        if flags:
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "discussion_id"],
                set_={key: getattr(stmt.excluded, key) for key in flags},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "discussion_id"])
        self.db.execute(stmt)
        self.db.commit()
        logger.debug("Defined relationship user=%s discussion=%s %s", user.id, discussion.id, flags)
        return self.discussion_relationship(user, discussion)  # type: ignore[return-value]

    def discussion_relationship(self, user: User, discussion: Exchange) -> DiscussionRelationship | None:
        """Return the user's relationship row for a discussion, if any."""
        stmt = (
            select(DiscussionRelationship)
            .where(
                DiscussionRelationship.user_id == user.id,
                DiscussionRelationship.discussion_id == discussion.id,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _related_discussions(self, user: User, flag: Any) -> list[Exchange]:
        stmt = (
            select(Exchange)
            .join(DiscussionRelationship, DiscussionRelationship.discussion_id == Exchange.id)
            .where(
                DiscussionRelationship.user_id == user.id,
                Exchange.kind == EXCHANGE_KIND_DISCUSSION,
                flag,
            )
            .order_by(Exchange.sticky.desc(), Exchange.last_post_at.desc(), Exchange.id.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def favorite_discussions(self, user: User) -> list[Exchange]:
        return self._related_discussions(user, DiscussionRelationship.favorite)

    def followed_discussions(self, user: User) -> list[Exchange]:
        return self._related_discussions(user, DiscussionRelationship.following)

    # Conversations

    def is_participant(self, conversation: Exchange, user: User | None) -> bool:
        """Return True when ``user`` holds a membership row in ``conversation``."""
        if user is None:
            return False
        stmt = select(ConversationRelationship.user_id).where(
            ConversationRelationship.conversation_id == conversation.id,
            ConversationRelationship.user_id == user.id,
        )
        return self.db.execute(stmt).first() is not None

    def participants(self, conversation: Exchange) -> list[User]:
        stmt = (
            select(User)
            .join(ConversationRelationship, ConversationRelationship.user_id == User.id)
            .where(ConversationRelationship.conversation_id == conversation.id)
            .order_by(User.username)
        )
        return list(self.db.execute(stmt).scalars())

    def conversations(self, user: User) -> list[Exchange]:
        """Conversations the user belongs to, most recently active first."""
        stmt = (
            select(Exchange)
            .join(ConversationRelationship, ConversationRelationship.conversation_id == Exchange.id)
            .where(
                ConversationRelationship.user_id == user.id,
                Exchange.kind == EXCHANGE_KIND_CONVERSATION,
            )
            .order_by(Exchange.last_post_at.desc(), Exchange.id.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def add_participant(self, conversation: Exchange, user: User, *, new_posts: bool = True) -> None:
        """Insert a membership row unless one already exists; never commits."""
        stmt = (
            insert_for(self.db, ConversationRelationship)
            .values(user_id=user.id, conversation_id=conversation.id, new_posts=new_posts)
            .on_conflict_do_nothing(index_elements=["user_id", "conversation_id"])
        )
        self.db.execute(stmt)

    def invite_participants(
        self,
        conversation: Exchange,
        usernames: str | Iterable[str],
    ) -> InviteResult:
        """Add every resolvable username to the conversation.

        Existing members are left untouched, so duplicate invites are
        harmless. Usernames with no matching user are skipped.
        """
        result = InviteResult()
        names = split_usernames(usernames)
        if not names:
            return result

        users = {
            u.username: u
            for u in self.db.execute(select(User).where(User.username.in_(names))).scalars()
        }
        for name in names:
            user = users.get(name)
            if user is None:
                result.skipped.append(name)
                continue
            self.add_participant(conversation, user, new_posts=True)
            result.invited.append(user)
        self.db.commit()

        logger.info(
            "Invited %d participants to conversation %s",
            len(result.invited),
            conversation.id,
        )
        if result.skipped:
            logger.info("Skipped unknown usernames for conversation %s: %s", conversation.id, result.skipped)
        return result

    def remove_participant(self, conversation: Exchange, user: User) -> bool:
        """Delete the membership row; returns False when there was none."""
        result = self.db.execute(
            delete(ConversationRelationship).where(
                ConversationRelationship.conversation_id == conversation.id,
                ConversationRelationship.user_id == user.id,
            )
        )
        self.db.commit()
        removed = bool(result.rowcount)
        if removed:
            logger.info("Removed user %s from conversation %s", user.id, conversation.id)
        return removed

    def clear_new_posts(self, conversation: Exchange, user: User) -> None:
        """Mark the conversation as read for the member.

        Raises:
            NotFoundError: If the user is not a member.
        """
        result = self.db.execute(
            update(ConversationRelationship)
            .where(
                ConversationRelationship.conversation_id == conversation.id,
                ConversationRelationship.user_id == user.id,
            )
            .values(new_posts=False)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise NotFoundError("Not a participant in this conversation")
        self.db.commit()

    def flag_new_posts(self, conversation: Exchange, author: User) -> None:
        """Set ``new_posts`` for every member other than ``author``; never commits."""
        self.db.execute(
            update(ConversationRelationship)
            .where(
                ConversationRelationship.conversation_id == conversation.id,
                ConversationRelationship.user_id != author.id,
            )
            .values(new_posts=True)
            .execution_options(synchronize_session=False)
        )

    def membership(self, conversation: Exchange, user: User) -> ConversationRelationship | None:
        stmt = (
            select(ConversationRelationship)
            .where(
                ConversationRelationship.conversation_id == conversation.id,
                ConversationRelationship.user_id == user.id,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()
