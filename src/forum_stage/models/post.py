# src/forum_stage/models/post.py
"""SQLAlchemy model for posts."""

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base
from forum_stage.db.time import utcnow


class Post(Base):
    """A single message within an exchange.

    Posts are read in creation order, which is also the unit of read position.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_exchange_id_id", "exchange_id", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exchange_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("exchange.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
