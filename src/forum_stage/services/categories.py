"""Ordered category storage and the category-to-discussion trust cascade."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from forum_stage.models import EXCHANGE_KIND_DISCUSSION, Category, Exchange, User
from forum_stage.services.errors import NotFoundError, ValidationFailure
from forum_stage.services.trust import TrustPolicy
from forum_stage.utils.slugs import parse_param

logger = logging.getLogger(__name__)

__all__ = ["CategoryStore"]


class CategoryStore:
    """Categories kept in a dense 1..n position order.

    Reordering is last-writer-wins; every mutation renumbers all positions so
    no two categories ever share one.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _ordered(self) -> list[Category]:
        stmt = select(Category).order_by(Category.position, Category.id)
        return list(self.db.execute(stmt).scalars())

    def list(self, principal: User | None) -> list[Category]:
        """Return categories by rank, dropping trusted ones the principal may not see."""
        return [c for c in self._ordered() if TrustPolicy.can_view(principal, c)]

    def get(self, category_id: int | str) -> Category:
        """Return a category by id or humanized param.

        Raises:
            NotFoundError: If no category has that id.
        """
        try:
            pk = parse_param(category_id)
        except ValueError as err:
            raise NotFoundError("Category not found") from err
        category = self.db.get(Category, pk)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def _validate(self, values: Mapping[str, Any], current: Category | None = None) -> ValidationFailure:
        failure = ValidationFailure(values=dict(values))
        if current is None or "name" in values:
            name = (values.get("name") or "").strip()
            if not name:
                failure.add("name", "can't be blank")
            else:
                clash = self.db.execute(
                    select(Category.id).where(Category.name == name)
                ).scalar_one_or_none()
                if clash is not None and (current is None or clash != current.id):
                    failure.add("name", "has already been taken")
        return failure

    def create(
        self,
        name: str | None,
        description: str | None = None,
        trusted: bool = False,
    ) -> Category | ValidationFailure:
        """Append a new category at the end of the order."""
        values = {"name": name, "description": description, "trusted": trusted}
        failure = self._validate(values)
        if failure:
            return failure

        last = self.db.execute(select(func.max(Category.position))).scalar()
        category = Category(
            name=(name or "").strip(),
            description=description,
            trusted=trusted,
            position=(last or 0) + 1,
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info("Created category %s at position %d", category.id, category.position)
        return category

    def update(self, category: Category, attributes: Mapping[str, Any]) -> Category | ValidationFailure:
        """Apply attribute changes; a trust change cascades to discussions."""
        failure = self._validate(attributes, current=category)
        if failure:
            return failure

        if "name" in attributes:
            category.name = attributes["name"].strip()
        if "description" in attributes:
            category.description = attributes["description"]
        trusted = attributes.get("trusted")
        if trusted is not None and bool(trusted) != category.trusted:
            return self.set_trusted(category, bool(trusted))

        self.db.commit()
        self.db.refresh(category)
        return category

    def set_trusted(self, category: Category, trusted: bool) -> Category:
        """Set the trust flag and copy it onto every discussion in the category.

        The category row and the bulk discussion update commit together, so
        readers never see a discussion disagreeing with its category. Exchange
        writes lock the category row they read, so a discussion created or
        moved concurrently either lands before this update or sees its result.
        """
        try:
            category.trusted = trusted
            # Writing the category row first takes its lock before discussions are touched.
            self.db.flush()
            result = self.db.execute(
                update(Exchange)
                .where(
                    Exchange.category_id == category.id,
                    Exchange.kind == EXCHANGE_KIND_DISCUSSION,
                )
                .values(trusted=trusted)
                .execution_options(synchronize_session="fetch")
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Category %s trusted=%s cascaded to %d discussions",
            category.id,
            trusted,
            result.rowcount,
        )
        self.db.refresh(category)
        return category

    def _renumber(self, ordered: list[Category]) -> None:
        for index, item in enumerate(ordered, start=1):
            item.position = index
        self.db.commit()

    def insert_at(self, category: Category, position: int) -> Category:
        """Move a category to ``position`` (1-based, clamped to the list bounds)."""
        ordered = [c for c in self._ordered() if c.id != category.id]
        index = min(max(position, 1), len(ordered) + 1) - 1
        ordered.insert(index, category)
        self._renumber(ordered)
        logger.info("Moved category %s to position %d", category.id, category.position)
        return category

    def move_up(self, category: Category) -> Category:
        """Swap the category with the one ranked above it."""
        return self.insert_at(category, self._rank_of(category) - 1)

    def move_down(self, category: Category) -> Category:
        """Swap the category with the one ranked below it."""
        return self.insert_at(category, self._rank_of(category) + 1)

    def _rank_of(self, category: Category) -> int:
        for index, item in enumerate(self._ordered(), start=1):
            if item.id == category.id:
                return index
        raise NotFoundError("Category not found")

    def delete(self, category: Category) -> ValidationFailure | None:
        """Delete a category that no discussion references, closing the gap."""
        in_use = self.db.execute(
            select(func.count()).select_from(Exchange).where(Exchange.category_id == category.id)
        ).scalar_one()
        if in_use:
            failure = ValidationFailure(values={"id": category.id})
            failure.add("base", "Category still has discussions")
            return failure

        self.db.delete(category)
        self.db.flush()
        self._renumber(self._ordered())
        logger.info("Deleted category %s", category.id)
        return None
