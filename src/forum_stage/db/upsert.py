"""Dialect-aware ``INSERT ... ON CONFLICT`` construction.

Relationship rows and read watermarks are written with a single conflict
resolving statement so concurrent duplicate requests cannot race between a
read and a write.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

__all__ = ["UnsupportedDialectError", "insert_for"]

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UnsupportedDialectError(RuntimeError):
    """Raised when the bound database has no ``ON CONFLICT`` insert."""


def insert_for(db: Session, model: Any) -> Any:
    """Return an insert construct for ``model`` that supports ``on_conflict_*``.

    Raises:
        UnsupportedDialectError: If the bound database has no upsert support.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError as err:
        raise UnsupportedDialectError(f"Upserts are not supported on {dialect!r}") from err
    return insert(model)
