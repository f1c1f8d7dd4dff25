# src/forum_stage/models/view.py
"""Read watermarks recording how far a user has read an exchange."""

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class ExchangeView(Base):
    """Last-read marker per user per exchange.

    ``last_index`` only ever grows. ``post_id`` is kept for lookup only and is
    deliberately not a foreign key: the post may be removed later.
    """

    __tablename__ = "exchange_view"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    exchange_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("exchange.id", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
