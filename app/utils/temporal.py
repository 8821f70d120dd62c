# app/utils/temporal.py

"""
Date-range helpers shared by overrides, lease plans, attribute values and
profile assignments.

A range is a pair of calendar dates. A missing end date means the range is
open and runs forever.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, NamedTuple, Optional, Protocol, TypeVar, Any

from app.core.exceptions import ConflictError, ValidationError


class DatedRecord(Protocol):
    """Anything with an id and a start/end date window."""
    id: Any
    start_date: date
    end_date: Optional[date]


R = TypeVar("R", bound=DatedRecord)


class DateWindow(NamedTuple):
    """A detached (id, start, end) triple, e.g. a record as it will look after a pending edit."""
    id: Any
    start_date: date
    end_date: Optional[date]


def overlaps(
    a_start: date, a_end: Optional[date], b_start: date, b_end: Optional[date]
) -> bool:
    """True when [a_start, a_end] and [b_start, b_end] share at least one day."""
    a_before_b_ends = b_end is None or a_start <= b_end
    b_before_a_ends = a_end is None or b_start <= a_end
    return a_before_b_ends and b_before_a_ends


def active_on(
    on_date: date, start: date, end: Optional[date], is_active: bool = True
) -> bool:
    """True when a record is switched on and its window covers on_date."""
    if not is_active:
        return False
    if on_date < start:
        return False
    return end is None or on_date <= end


def validate_range(start: Optional[date], end: Optional[date]) -> None:
    """Reject a range whose end falls before its start."""
    if start is None:
        raise ValidationError("Start date is required")
    if end is not None and end < start:
        raise ValidationError(
            "End date cannot be before start date",
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )


def day_before(d: date) -> date:
    return d - timedelta(days=1)


def find_overlapping(
    records: Iterable[R],
    start: date,
    end: Optional[date],
    exclude_id: Any = None,
) -> Optional[R]:
    """Return the first record whose window overlaps [start, end], skipping exclude_id."""
    for record in records:
        if exclude_id is not None and record.id == exclude_id:
            continue
        if overlaps(start, end, record.start_date, record.end_date):
            return record
    return None


def _describe_default(record: DatedRecord) -> str:
    end = record.end_date.isoformat() if record.end_date else "ongoing"
    return f"record {record.id} ({record.start_date.isoformat()} to {end})"


def ensure_no_overlap(
    records: Iterable[R],
    start: date,
    end: Optional[date],
    exclude_id: Any = None,
    describe: Callable[[R], str] = _describe_default,
) -> None:
    """
    Enforce "at most one record per key at a time".

    Callers pass only the records that share the key (same owner/cab/shift/day,
    same shift and attribute type, every lease plan, ...). Raises ConflictError
    naming the first clash.
    """
    clash = find_overlapping(records, start, end, exclude_id=exclude_id)
    if clash is not None:
        raise ConflictError(
            f"Date range overlaps with {describe(clash)}",
            conflicting_id=clash.id,
        )
