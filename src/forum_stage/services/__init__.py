# src/forum_stage/services/__init__.py
"""Business logic services for the forum application."""

from .categories import CategoryStore
from .errors import (
    ForbiddenError,
    ForumError,
    InvalidRangeError,
    NoCategoriesError,
    NoQueryError,
    NotFoundError,
    ValidationFailure,
)
from .exchange_service import ExchangeService
from .exchanges import ExchangeStore
from .read_tracker import ReadTracker
from .relationships import RelationshipEngine
from .trust import TrustPolicy

__all__ = [
    "CategoryStore",
    "ExchangeService",
    "ExchangeStore",
    "ReadTracker",
    "RelationshipEngine",
    "TrustPolicy",
    "ForumError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidRangeError",
    "NoQueryError",
    "NoCategoriesError",
    "ValidationFailure",
]
