"""Trust and rank based access rules."""
from __future__ import annotations

from typing import Any, Protocol

from sqlalchemy import ColumnElement, false, true

from forum_stage.models import User


class TrustGated(Protocol):
    """Anything carrying a ``trusted`` flag, such as a category or discussion."""

    trusted: bool


class TrustPolicy:
    """Decide whether a principal may view or edit trust-gated resources."""

    @staticmethod
    def is_trusted(principal: User | None) -> bool:
        """Return True for principals allowed to see trusted content."""
        if principal is None:
            return False
        return bool(principal.trusted or principal.admin)

    @staticmethod
    def can_view(principal: User | None, resource: TrustGated) -> bool:
        """Non-gated resources are public; gated ones need a trusted or admin principal."""
        if not resource.trusted:
            return True
        return TrustPolicy.is_trusted(principal)

    @staticmethod
    def can_edit(principal: User | None, exchange: Any) -> bool:
        """Only the poster or a moderator may edit an exchange."""
        if principal is None:
            return False
        if principal.is_moderator:
            return True
        return exchange.poster_id == principal.id

    @staticmethod
    def viewable_clause(principal: User | None, trusted_column: Any) -> ColumnElement[bool]:
        """Express ``can_view`` as a SQL filter on ``trusted_column``."""
        if TrustPolicy.is_trusted(principal):
            return true()
        return trusted_column.is_(false())
