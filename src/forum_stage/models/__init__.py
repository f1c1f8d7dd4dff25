# src/forum_stage/models/__init__.py
"""SQLAlchemy models for the forum application."""

from .category import Category
from .exchange import EXCHANGE_KIND_CONVERSATION, EXCHANGE_KIND_DISCUSSION, Exchange
from .post import Post
from .relationship import ConversationRelationship, DiscussionRelationship
from .user import User
from .view import ExchangeView

__all__ = [
    "Category",
    "Exchange", "EXCHANGE_KIND_DISCUSSION", "EXCHANGE_KIND_CONVERSATION",
    "Post",
    "DiscussionRelationship", "ConversationRelationship",
    "User",
    "ExchangeView",
]
