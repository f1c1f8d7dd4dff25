# src/forum_stage/schemas/exchange.py
"""Exchange-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .category import CategoryResponse
from .common import PageMeta
from .post import PostResponse


class ExchangeAttributes(BaseModel):
    """Submitted exchange fields.

    Everything is optional; missing or blank required fields are reported as
    field errors by the service so the form can be presented again.
    """

    title: str | None = None
    body: str | None = None
    category_id: int | str | None = None
    nsfw: bool | None = None
    sticky: bool | None = None
    closed: bool | None = None


class ExchangeResponse(BaseModel):
    """Schema for exchange information returned by the API."""

    id: int
    kind: str
    title: str
    param: str
    category_id: int | None
    trusted: bool
    sticky: bool
    closed: bool
    nsfw: bool
    poster_id: int
    last_poster_id: int | None
    posts_count: int
    created_at: datetime
    last_post_at: datetime
    unread: int | None = None

    model_config = ConfigDict(from_attributes=True)


class ExchangePage(BaseModel):
    discussions: list[ExchangeResponse]
    meta: PageMeta
    days: int | None = None


class RelationshipResponse(BaseModel):
    """A user's follow/favorite flags on a discussion."""

    discussion_id: int
    following: bool
    favorite: bool

    model_config = ConfigDict(from_attributes=True)


class ParticipantResponse(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class ExchangeShowResponse(BaseModel):
    """One page of an exchange as presented to the principal."""

    exchange: ExchangeResponse
    posts: list[PostResponse]
    meta: PageMeta
    context: int = 0
    relationship: RelationshipResponse | None = None
    participants: list[ParticipantResponse] = Field(default_factory=list)


class ExchangeFormResponse(BaseModel):
    """Prefilled values for new/edit forms."""

    kind: str
    exchange: ExchangeResponse | None = None
    body: str = ""
    category: CategoryResponse | None = None
    recipient: ParticipantResponse | None = None
    categories: list[CategoryResponse] = Field(default_factory=list)


class InviteRequest(BaseModel):
    """Comma-separated usernames, or a list of them."""

    username: str | list[str]


class InviteResponse(BaseModel):
    invited: list[ParticipantResponse]
    skipped: list[str]
    participants: list[ParticipantResponse]
