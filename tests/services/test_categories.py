# tests/services/test_categories.py
"""Tests for category ordering, validation and the trust cascade."""

import pytest

from forum_stage.models import Category, Exchange
from forum_stage.services.categories import CategoryStore
from forum_stage.services.errors import NotFoundError, ValidationFailure
from forum_stage.services.exchanges import ExchangeStore


def _positions(store: CategoryStore, principal) -> list[tuple[str, int]]:
    return [(c.name, c.position) for c in store.list(principal)]


def test_create_appends_at_end(db_session, admin) -> None:
    store = CategoryStore(db_session)
    store.create("First")
    store.create("Second")
    assert _positions(store, admin) == [("First", 1), ("Second", 2)]


def test_create_rejects_blank_and_duplicate_names(db_session, category) -> None:
    store = CategoryStore(db_session)

    blank = store.create("   ")
    assert isinstance(blank, ValidationFailure)
    assert blank.errors == {"name": ["can't be blank"]}

    duplicate = store.create(category.name)
    assert isinstance(duplicate, ValidationFailure)
    assert "has already been taken" in duplicate.errors["name"]


def test_get_unknown_category_raises_not_found(db_session) -> None:
    with pytest.raises(NotFoundError):
        CategoryStore(db_session).get(404)
    with pytest.raises(NotFoundError):
        CategoryStore(db_session).get("nope")


def test_get_accepts_humanized_param(db_session, category) -> None:
    assert CategoryStore(db_session).get(category.to_param()) is category


def test_list_hides_trusted_categories_from_untrusted(db_session, category, trusted_category, member, trusted_user) -> None:
    store = CategoryStore(db_session)
    assert store.list(None) == [category]
    assert store.list(member) == [category]
    assert store.list(trusted_user) == [category, trusted_category]


def test_reordering_keeps_positions_dense(db_session, admin, make_category) -> None:
    store = CategoryStore(db_session)
    a, b, c = make_category("A"), make_category("B"), make_category("C")

    store.move_down(a)
    assert _positions(store, admin) == [("B", 1), ("A", 2), ("C", 3)]

    store.move_up(c)
    assert _positions(store, admin) == [("B", 1), ("C", 2), ("A", 3)]

    store.insert_at(a, 1)
    assert _positions(store, admin) == [("A", 1), ("B", 2), ("C", 3)]

    # Out of range positions clamp to the ends.
    store.insert_at(a, 99)
    store.move_up(b)
    assert _positions(store, admin) == [("B", 1), ("C", 2), ("A", 3)]


def test_delete_closes_the_gap(db_session, admin, make_category) -> None:
    store = CategoryStore(db_session)
    a, b, c = make_category("A"), make_category("B"), make_category("C")

    assert store.delete(b) is None
    assert _positions(store, admin) == [("A", 1), ("C", 2)]


def test_delete_refuses_category_with_discussions(db_session, discussion, category) -> None:
    failure = CategoryStore(db_session).delete(category)
    assert isinstance(failure, ValidationFailure)
    assert db_session.get(Category, category.id) is not None


def test_trust_change_cascades_to_discussions(db_session, member, make_category, make_discussion) -> None:
    """Every discussion in the category takes the new flag; others are untouched."""
    store = CategoryStore(db_session)
    c1 = make_category("Cascade")
    c2 = make_category("Elsewhere")
    d1 = make_discussion(member, c1, title="one")
    d2 = make_discussion(member, c1, title="two")
    d3 = make_discussion(member, c2, title="three")

    result = store.update(c1, {"trusted": True})

    assert isinstance(result, Category)
    assert result.trusted is True
    for exchange in (d1, d2):
        db_session.refresh(exchange)
        assert exchange.trusted is True
    db_session.refresh(d3)
    assert d3.trusted is False

    store.set_trusted(c1, False)
    db_session.refresh(d1)
    assert d1.trusted is False


def test_trusted_discussions_hidden_after_cascade(db_session, member, category, discussion) -> None:
    CategoryStore(db_session).set_trusted(category, True)
    page = ExchangeStore(db_session).list_viewable(member)
    assert discussion.id not in [e.id for e in page.items]
    assert isinstance(db_session.get(Exchange, discussion.id), Exchange)


def test_update_renames_category(db_session, category) -> None:
    result = CategoryStore(db_session).update(category, {"name": "  Renamed  "})
    assert isinstance(result, Category)
    assert result.name == "Renamed"
