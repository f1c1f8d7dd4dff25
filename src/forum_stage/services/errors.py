"""Error kinds raised or returned by the forum services."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ForumError(RuntimeError):
    """Base exception for request-level failures.

    Raising one of these short-circuits the request before any write happens.
    """


class NotFoundError(ForumError):
    """Raised when an identifier does not resolve to a record."""


class ForbiddenError(ForumError):
    """Raised when the principal may not view or edit a resource."""


class InvalidRangeError(ForumError):
    """Raised when a numeric parameter falls outside its accepted range.

    The caller is expected to resubmit with ``corrected`` rather than have the
    service silently coerce the value.
    """

    def __init__(self, parameter: str, value: int, corrected: int, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter
        self.value = value
        self.corrected = corrected


class NoQueryError(ForumError):
    """Raised when a search is requested without a query term."""


class NoCategoriesError(ForumError):
    """Raised when a discussion cannot be created because no category is available."""


@dataclass
class ValidationFailure:
    """Structured, field-level validation result.

    Returned rather than raised so the submitted values can be presented
    again alongside the errors.
    """

    errors: dict[str, list[str]] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)

    def add(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def __bool__(self) -> bool:
        return bool(self.errors)
