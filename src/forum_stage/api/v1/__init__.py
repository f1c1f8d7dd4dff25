"""Version 1 API endpoints."""

from .endpoints import categories_router, discussions_router

__all__ = [
    "categories_router",
    "discussions_router",
]
