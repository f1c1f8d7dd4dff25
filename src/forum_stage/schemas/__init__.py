"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .category import CategoryCreate, CategoryResponse, CategoryUpdate
from .common import PageMeta, ValidationFailureResponse
from .exchange import (
    ExchangeAttributes,
    ExchangeFormResponse,
    ExchangePage,
    ExchangeResponse,
    ExchangeShowResponse,
    InviteRequest,
    InviteResponse,
    ParticipantResponse,
    RelationshipResponse,
)
from .post import PostCreate, PostPage, PostResponse

__all__ = [
    "CategoryCreate", "CategoryResponse", "CategoryUpdate",
    "PageMeta", "ValidationFailureResponse",
    "ExchangeAttributes", "ExchangeFormResponse", "ExchangePage", "ExchangeResponse",
    "ExchangeShowResponse", "InviteRequest", "InviteResponse", "ParticipantResponse",
    "RelationshipResponse",
    "PostCreate", "PostPage", "PostResponse",
]
