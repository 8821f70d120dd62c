from datetime import date

import pytest

from app.core.exceptions import ConflictError, ValidationError
from app.utils.temporal import (
    DateWindow, active_on, day_before, ensure_no_overlap, find_overlapping,
    overlaps, validate_range,
)


def d(day, month=1, year=2025):
    return date(year, month, day)


@pytest.mark.parametrize(
    "a_start, a_end, b_start, b_end, expected",
    [
        (d(1), d(5), d(5), d(9), True),      # shared boundary day
        (d(1), d(4), d(5), d(9), False),     # adjacent
        (d(1), None, d(20), d(25), True),    # open range reaches everything after
        (d(10), d(12), d(1), None, True),
        (d(10), d(12), d(13), None, False),
        (d(1), None, d(1), None, True),
        (d(3), d(3), d(1), d(9), True),      # single day inside
    ],
)
def test_overlaps(a_start, a_end, b_start, b_end, expected):
    assert overlaps(a_start, a_end, b_start, b_end) is expected
    assert overlaps(b_start, b_end, a_start, a_end) is expected


def test_active_on_honours_window_and_flag():
    assert active_on(d(5), d(1), d(5))
    assert active_on(d(1), d(1), None)
    assert not active_on(d(6), d(1), d(5))
    assert not active_on(d(1, 12, 2024), d(1), None)
    assert not active_on(d(3), d(1), None, is_active=False)


def test_validate_range():
    validate_range(d(1), None)
    validate_range(d(1), d(1))
    with pytest.raises(ValidationError):
        validate_range(d(2), d(1))
    with pytest.raises(ValidationError):
        validate_range(None, d(1))


def test_day_before_crosses_month():
    assert day_before(d(1, 3)) == date(2025, 2, 28)


def test_find_overlapping_skips_excluded_record():
    windows = [DateWindow(1, d(1), d(10)), DateWindow(2, d(20), None)]
    assert find_overlapping(windows, d(5), d(6)).id == 1
    assert find_overlapping(windows, d(5), d(6), exclude_id=1) is None
    assert find_overlapping(windows, d(11), d(19)) is None


def test_ensure_no_overlap_names_the_conflict():
    windows = [DateWindow(7, d(1), None)]
    with pytest.raises(ConflictError) as exc_info:
        ensure_no_overlap(windows, d(15), d(20))
    assert exc_info.value.details["conflicting_id"] == 7
    assert "record 7" in exc_info.value.message


def test_ensure_no_overlap_sees_pending_end_date():
    # The open record will be closed the day before the new range starts
    windows = [DateWindow(7, d(1), day_before(d(15)))]
    ensure_no_overlap(windows, d(15), None)
