# tests/test_slugs.py
"""Tests for humanized URL parameters."""

import pytest

from forum_stage.utils.slugs import humanized_param, parse_param, slugify


def test_slugify_replaces_unsafe_runs_with_single_dash() -> None:
    assert slugify("Hello,  world / again") == "Hello,-world-again"


def test_slugify_turns_brackets_into_parentheses() -> None:
    assert slugify("[News] {daily}") == "(News)-(daily)"


def test_humanized_param_includes_slug() -> None:
    assert humanized_param(12, "Cats and dogs", work_safe=False) == "12;Cats-and-dogs"


def test_humanized_param_work_safe_is_bare_id() -> None:
    assert humanized_param(12, "Not safe for work", work_safe=True) == "12"


@pytest.mark.parametrize("param", [7, "7", "7;whatever-title", " 7 ;x"])
def test_parse_param_extracts_id(param) -> None:
    assert parse_param(param) == 7


def test_parse_param_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_param("abc;slug")
