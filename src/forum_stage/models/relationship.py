# src/forum_stage/models/relationship.py
"""Models linking users to the exchanges they follow, favorite or belong to."""

from sqlalchemy import Boolean, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class DiscussionRelationship(Base):
    """Per-user follow and favorite flags on a discussion."""

    __tablename__ = "discussion_relationship"
    __table_args__ = (
        Index("ix_discussion_relationship_discussion_id", "discussion_id"),
    )

    # Composite primary key keeps one row per (user, discussion).
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("exchange.id", ondelete="CASCADE"),
        primary_key=True,
    )
    following: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ConversationRelationship(Base):
    """Membership of a user in a conversation."""

    __tablename__ = "conversation_relationship"
    __table_args__ = (
        Index("ix_conversation_relationship_conversation_id", "conversation_id"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    conversation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("exchange.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Set when someone else posts; cleared when the member reads the conversation.
    new_posts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
