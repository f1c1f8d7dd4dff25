# tests/services/test_pagination.py
"""Tests for page arithmetic."""

import pytest

from forum_stage.services.pagination import normalize_page, paginate_items


@pytest.mark.parametrize(("raw", "expected"), [(None, 1), ("3", 3), (0, 1), ("junk", 1), (-2, 1)])
def test_normalize_page(raw, expected) -> None:
    assert normalize_page(raw) == expected


def test_paginate_items_last_page() -> None:
    page = paginate_items(list(range(7)), "last", 3)
    assert page.page == 3
    assert page.items == [6]
    assert page.next_page is None
    assert page.previous_page == 2


def test_paginate_items_clamps_past_the_end() -> None:
    page = paginate_items(list(range(4)), 9, 2)
    assert page.page == 2
    assert page.items == [2, 3]


def test_empty_listing_has_one_page() -> None:
    page = paginate_items([], 1, 30)
    assert page.pages == 1
    assert page.items == []
