# src/forum_stage/models/exchange.py
"""SQLAlchemy model for discussions and conversations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base
from forum_stage.db.time import utcnow
from forum_stage.utils.slugs import humanized_param

EXCHANGE_KIND_DISCUSSION = "discussion"
EXCHANGE_KIND_CONVERSATION = "conversation"


class Exchange(Base):
    """A thread of posts, tagged by kind.

    Discussions are public and filed under a category whose trust flag they
    mirror. Conversations are private; membership rows in
    ``conversation_relationship`` decide who may read them.
    """

    __tablename__ = "exchange"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('discussion', 'conversation')",
            name="ck_exchange_kind",
        ),
        Index("ix_exchange_category_id", "category_id"),
        Index("ix_exchange_last_post_at", "last_post_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(Text, nullable=False, default=EXCHANGE_KIND_DISCUSSION)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    # Discussions only.
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.id"),
        nullable=True,
    )
    # Copy of the category flag, maintained by the category cascade.
    trusted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Moderator-controlled flags.
    sticky: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    nsfw: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    poster_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    last_poster_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=True,
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=True,
    )

    posts_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)
    last_post_at: Mapped[datetime] = mapped_column(default=utcnow)

    @property
    def is_discussion(self) -> bool:
        return self.kind == EXCHANGE_KIND_DISCUSSION

    @property
    def is_conversation(self) -> bool:
        return self.kind == EXCHANGE_KIND_CONVERSATION

    def to_param(self, work_safe: bool = False) -> str:
        """Return the URL parameter for this exchange."""
        return humanized_param(self.id, self.title, work_safe=work_safe)
