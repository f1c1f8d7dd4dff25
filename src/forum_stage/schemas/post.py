# src/forum_stage/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .common import PageMeta


class PostCreate(BaseModel):
    """Schema for replying to an exchange."""

    body: str | None = None


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    exchange_id: int
    user_id: int
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostPage(BaseModel):
    posts: list[PostResponse]
    meta: PageMeta
