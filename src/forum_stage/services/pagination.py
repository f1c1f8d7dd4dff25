"""Offset pagination over SQLAlchemy queries."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """A bounded slice of an ordered sequence plus page metadata.

    ``offset`` is where the page proper starts; ``items`` may begin earlier
    when ``context`` items from the previous page were prepended.
    """

    items: list[T]
    page: int
    per_page: int
    total: int
    offset: int
    context: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def count(self) -> int:
        """Number of items on the page proper, context excluded."""
        return len(self.items) - self.context

    @property
    def last(self) -> T | None:
        return self.items[-1] if self.items else None

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.page < self.pages else None

    @property
    def previous_page(self) -> int | None:
        return self.page - 1 if self.page > 1 else None


def normalize_page(page: int | str | None) -> int:
    """Return a 1-based page number, treating garbage as the first page."""
    try:
        number = int(page) if page is not None else 1
    except (TypeError, ValueError):
        return 1
    return max(1, number)


def paginate(
    db: Session,
    stmt: Select[Any],
    page: int | str | None,
    per_page: int,
    context: int = 0,
    total: int | None = None,
) -> Page[Any]:
    """Execute ``stmt`` for one page.

    Args:
        db: Database session.
        stmt: Ordered select returning ORM entities.
        page: Requested 1-based page; "last" jumps to the final page.
        per_page: Page size.
        context: Items of the previous page to repeat on top of the page.
        total: Precomputed row count, counted from ``stmt`` when omitted.
    """
    if total is None:
        total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    pages = max(1, math.ceil(total / per_page)) if per_page else 1
    number = pages if page == "last" else min(normalize_page(page), pages)

    offset = (number - 1) * per_page
    context = min(context, offset)
    rows = db.execute(stmt.offset(offset - context).limit(per_page + context)).scalars().all()
    return Page(
        items=list(rows),
        page=number,
        per_page=per_page,
        total=total,
        offset=offset,
        context=context,
    )


def paginate_items(items: list[T], page: int | str | None, per_page: int) -> Page[T]:
    """Paginate an already materialized list."""
    total = len(items)
    pages = max(1, math.ceil(total / per_page)) if per_page else 1
    number = pages if page == "last" else min(normalize_page(page), pages)
    offset = (number - 1) * per_page
    return Page(
        items=items[offset:offset + per_page],
        page=number,
        per_page=per_page,
        total=total,
        offset=offset,
    )
