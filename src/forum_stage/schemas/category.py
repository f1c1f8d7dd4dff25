# src/forum_stage/schemas/category.py
"""Category-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class CategoryCreate(BaseModel):
    """Schema for creating a new category.

    ``name`` is optional here so blank names come back as field errors
    instead of request validation failures.
    """

    name: str | None = None
    description: str | None = None
    trusted: bool = False


class CategoryUpdate(BaseModel):
    """Partial category changes."""

    name: str | None = None
    description: str | None = None
    trusted: bool | None = None


class CategoryResponse(BaseModel):
    """Schema for category information returned by the API."""

    id: int
    name: str
    description: str | None
    position: int
    trusted: bool
    param: str

    model_config = ConfigDict(from_attributes=True)
