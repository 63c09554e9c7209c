import pytest

from serilovers.exceptions import ReviewNotAllowedError
from serilovers.models import WatchingStatus
from serilovers.services.watching_state import REVIEW_ALLOWED, get_handler, next_status


@pytest.mark.parametrize("watched", [0, 1, 5, 20])
def test_series_without_episodes_is_always_to_watch(watched):
    assert next_status(0, watched) == WatchingStatus.TO_WATCH


@pytest.mark.parametrize("total", [1, 2, 10, 250])
def test_nothing_watched_is_to_watch(total):
    assert next_status(total, 0) == WatchingStatus.TO_WATCH


@pytest.mark.parametrize("total, watched", [(2, 1), (10, 4), (10, 9), (250, 1)])
def test_partially_watched_is_in_progress(total, watched):
    assert next_status(total, watched) == WatchingStatus.IN_PROGRESS


@pytest.mark.parametrize("total, watched", [(1, 1), (10, 10), (10, 12)])
def test_all_watched_is_finished(total, watched):
    assert next_status(total, watched) == WatchingStatus.FINISHED


def test_negative_watched_count_is_to_watch():
    assert next_status(10, -1) == WatchingStatus.TO_WATCH


@pytest.mark.parametrize("current", list(WatchingStatus))
def test_transition_ignores_current_state(current):
    handler = get_handler(current)
    assert handler.update_state(10, 0) == WatchingStatus.TO_WATCH
    assert handler.update_state(10, 4) == WatchingStatus.IN_PROGRESS
    assert handler.update_state(10, 10) == WatchingStatus.FINISHED


def test_finished_can_move_backwards():
    assert get_handler(WatchingStatus.FINISHED).update_state(10, 9) == WatchingStatus.IN_PROGRESS


def test_review_table_only_allows_finished():
    assert REVIEW_ALLOWED == {
        WatchingStatus.TO_WATCH: False,
        WatchingStatus.IN_PROGRESS: False,
        WatchingStatus.FINISHED: True,
    }


def test_finished_handler_allows_review():
    get_handler(WatchingStatus.FINISHED).validate_review_creation()


@pytest.mark.parametrize("status", [WatchingStatus.TO_WATCH, WatchingStatus.IN_PROGRESS])
def test_unfinished_handlers_reject_review(status):
    with pytest.raises(ReviewNotAllowedError) as exc_info:
        get_handler(status).validate_review_creation()

    assert exc_info.value.current_state == status
    assert status.display_name in str(exc_info.value)


def test_get_handler_accepts_raw_values():
    assert get_handler(2) is get_handler(WatchingStatus.FINISHED)


def test_display_names():
    assert [s.display_name for s in WatchingStatus] == ["ToWatch", "InProgress", "Finished"]
    assert [int(s) for s in WatchingStatus] == [0, 1, 2]
