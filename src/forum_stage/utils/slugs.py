# src/forum_stage/utils/slugs.py
"""Humanized URL parameters for categories and exchanges."""

from __future__ import annotations

import re

_OPENING = re.compile(r"[\[{]")
_CLOSING = re.compile(r"[\]}]")
_UNSAFE = re.compile(r"[^\w!$&'()*,;=\-]+", re.ASCII)
_DASHES = re.compile(r"-{2,}")


def slugify(name: str) -> str:
    """Turn a display name into a URL-safe slug.

    Brackets and braces become parentheses, any run of other characters that
    are not URL-safe becomes a single dash.
    """
    slug = _OPENING.sub("(", name)
    slug = _CLOSING.sub(")", slug)
    slug = _UNSAFE.sub("-", slug)
    return _DASHES.sub("-", slug)


def humanized_param(record_id: int, name: str, *, work_safe: bool) -> str:
    """Return ``"<id>;<slug>"``, or just the id when work-safe URLs are enabled."""
    if work_safe:
        return str(record_id)
    return f"{record_id};{slugify(name)}"


def parse_param(param: int | str) -> int:
    """Extract the numeric id from a humanized parameter.

    Raises:
        ValueError: If the parameter does not start with an integer id.
    """
    if isinstance(param, int):
        return param
    head = str(param).split(";", 1)[0].strip()
    return int(head)
