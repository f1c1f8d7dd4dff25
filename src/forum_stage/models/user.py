# src/forum_stage/models/user.py
"""SQLAlchemy model for forum members."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base
from forum_stage.db.time import utcnow


class User(Base):
    """A registered member and the rank flags used for access control."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # Trusted members may read trusted categories and their discussions.
    trusted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    @property
    def is_moderator(self) -> bool:
        """Admins carry moderator rank as well."""
        return self.moderator or self.admin
