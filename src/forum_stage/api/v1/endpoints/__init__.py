"""API endpoint modules for version 1."""

from .categories import router as categories_router
from .discussions import router as discussions_router

__all__ = [
    "categories_router",
    "discussions_router",
]
