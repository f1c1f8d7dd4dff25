# src/forum_stage/models/category.py
"""SQLAlchemy model for discussion categories."""

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base
from forum_stage.utils.slugs import humanized_param


class Category(Base):
    """Ordered grouping of discussions carrying a trust flag.

    A category's ``trusted`` flag is copied onto every discussion filed under
    it; see ``CategoryStore.set_trusted``.
    """

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Dense 1..n rank among all categories.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    trusted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_param(self, work_safe: bool = False) -> str:
        """Return the URL parameter for this category."""
        return humanized_param(self.id, self.name, work_safe=work_safe)
