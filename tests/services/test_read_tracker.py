# tests/services/test_read_tracker.py
"""Tests for read watermarks."""

from forum_stage.services.exchanges import ExchangeStore
from forum_stage.services.read_tracker import ReadTracker


def test_watermark_never_moves_backwards(db_session, member, discussion) -> None:
    tracker = ReadTracker(db_session)

    tracker.mark_viewed(member, discussion, None, 10)
    view = tracker.mark_viewed(member, discussion, None, 4)

    assert view.last_index == 10


def test_out_of_order_writes_converge_on_maximum(db_session, member, discussion) -> None:
    tracker = ReadTracker(db_session)
    for index in (3, 9, 1, 7):
        tracker.mark_viewed(member, discussion, None, index)
    assert tracker.last_index(member, discussion) == 9


def test_unread_count_without_watermark_is_everything(db_session, member, discussion, add_posts) -> None:
    add_posts(discussion, member, 2)
    assert ReadTracker(db_session).unread_count(member, discussion) == 3


def test_mark_as_read_clears_unread_until_next_post(db_session, member, other_member, discussion, add_posts) -> None:
    tracker = ReadTracker(db_session)
    add_posts(discussion, other_member, 4)

    view = tracker.mark_as_read(member, discussion)
    assert view.last_index == 5
    assert view.post_id == ExchangeStore(db_session).last_post(discussion).id
    assert tracker.unread_count(member, discussion) == 0

    add_posts(discussion, other_member, 1)
    assert tracker.unread_count(member, discussion) == 1


def test_resume_page_points_at_first_unread_post(db_session, member, discussion, add_posts) -> None:
    tracker = ReadTracker(db_session)
    add_posts(discussion, member, 11)  # 12 posts in total

    assert tracker.resume_page(member, discussion, per_page=5) == 1
    tracker.mark_viewed(member, discussion, None, 5)
    assert tracker.resume_page(member, discussion, per_page=5) == 2
    tracker.mark_viewed(member, discussion, None, 12)
    assert tracker.resume_page(member, discussion, per_page=5) == 3


def test_anonymous_reader_has_no_watermark(db_session, discussion) -> None:
    tracker = ReadTracker(db_session)
    assert tracker.last_index(None, discussion) == 0
    assert tracker.resume_page(None, discussion, per_page=5) == 1
