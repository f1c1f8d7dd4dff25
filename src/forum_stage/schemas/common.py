"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from forum_stage.services.pagination import Page


class PageMeta(BaseModel):
    """Pagination metadata returned alongside list payloads."""

    page: int
    pages: int
    per_page: int
    total: int
    offset: int
    next_page: int | None = None
    previous_page: int | None = None

    @classmethod
    def from_page(cls, page: Page[Any]) -> PageMeta:
        return cls(
            page=page.page,
            pages=page.pages,
            per_page=page.per_page,
            total=page.total,
            offset=page.offset,
            next_page=page.next_page,
            previous_page=page.previous_page,
        )


class ValidationFailureResponse(BaseModel):
    """Field errors plus the submitted values so a form can be shown again."""

    notice: str
    errors: dict[str, list[str]] = Field(default_factory=dict)
    values: dict[str, Any] = Field(default_factory=dict)
