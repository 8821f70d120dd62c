from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.fleet.schemas import CabCreate, CabType, DayOfWeek, DriverCreate, ShiftType
from app.rates.models import LeaseRateOverride
from app.rates.repository import LeaseRateOverrideRepository
from app.rates.schemas import BulkOverrideCreate, LeaseRateOverrideCreate, LeaseRateOverrideUpdate
from app.rates.services import LeaseRateOverrideService, LeaseRateService

TODAY = date(2025, 1, 1)


def make(**kwargs):
    fields = dict(owner_driver_number="O1", lease_rate=Decimal("50"), start_date=TODAY)
    fields.update(kwargs)
    return LeaseRateOverrideCreate(**fields)


@pytest.fixture()
def overrides(db_session, cab):
    return LeaseRateOverrideService(db_session)


def test_create_derives_priority(overrides):
    created = overrides.create_override(
        make(cab_number="C1", day_of_week=DayOfWeek.MONDAY), created_by="ops", today=TODAY
    )

    assert created.id is not None
    assert created.priority == 70
    assert created.day_of_week == "MONDAY"
    assert created.created_by == "ops"


def test_start_defaults_to_today(overrides):
    created = overrides.create_override(make(start_date=None), today=TODAY)

    assert created.start_date == TODAY
    assert created.priority == 0


def test_unknown_owner_is_not_found(overrides):
    with pytest.raises(NotFoundError):
        overrides.create_override(make(owner_driver_number="O9"), today=TODAY)


def test_driver_must_be_an_owner(overrides, fleet):
    fleet.create_driver(DriverCreate(driver_number="D2"))
    with pytest.raises(ValidationError):
        overrides.create_override(make(owner_driver_number="D2"), today=TODAY)


def test_cab_must_exist_and_belong_to_owner(overrides, fleet):
    fleet.create_driver(DriverCreate(driver_number="O2", is_owner=True))
    fleet.create_cab(CabCreate(cab_number="C2", cab_type=CabType.SEDAN, owner_driver_number="O2"))

    with pytest.raises(NotFoundError):
        overrides.create_override(make(cab_number="C404"), today=TODAY)
    with pytest.raises(ValidationError):
        overrides.create_override(make(cab_number="C2"), today=TODAY)


def test_end_before_start_is_rejected(overrides):
    with pytest.raises(ValidationError):
        overrides.create_override(make(start_date=date(2025, 1, 10), end_date=date(2025, 1, 9)), today=TODAY)


def test_start_within_window_ends_open_override(overrides):
    first = overrides.create_override(make(cab_number="C1", start_date=date(2024, 12, 1)), today=TODAY)
    second = overrides.create_override(
        make(cab_number="C1", lease_rate=Decimal("60"), start_date=date(2025, 1, 5)), today=TODAY
    )

    assert overrides.get_override(first.id).end_date == date(2025, 1, 4)
    assert second.end_date is None


def test_start_beyond_window_leaves_open_override(overrides):
    first = overrides.create_override(make(cab_number="C1", start_date=date(2024, 12, 1)), today=TODAY)
    overrides.create_override(
        make(cab_number="C1", shift_type=ShiftType.DAY, start_date=date(2025, 2, 1)), today=TODAY
    )

    assert overrides.get_override(first.id).end_date is None


def test_start_beyond_window_with_same_key_conflicts(overrides):
    first = overrides.create_override(make(cab_number="C1", start_date=date(2024, 12, 1)), today=TODAY)

    with pytest.raises(ConflictError) as exc_info:
        overrides.create_override(make(cab_number="C1", start_date=date(2025, 2, 1)), today=TODAY)

    assert exc_info.value.details["conflicting_id"] == first.id
    assert overrides.get_override(first.id).end_date is None


def test_failed_create_does_not_auto_close(overrides):
    open_ended = overrides.create_override(make(cab_number="C1", start_date=date(2024, 12, 1)), today=TODAY)
    overrides.create_override(
        make(cab_number="C1", day_of_week=DayOfWeek.MONDAY,
             start_date=date(2024, 12, 1), end_date=date(2025, 3, 1)),
        today=TODAY,
    )

    with pytest.raises(ConflictError):
        overrides.create_override(
            make(cab_number="C1", day_of_week=DayOfWeek.MONDAY, start_date=date(2025, 1, 5)), today=TODAY
        )

    assert overrides.get_override(open_ended.id).end_date is None
    assert len(overrides.list_owner_overrides("O1")) == 2


def test_later_open_override_is_not_auto_closed(overrides):
    overrides.create_override(make(cab_number="C1", start_date=date(2025, 1, 3)), today=TODAY)

    with pytest.raises(ConflictError):
        overrides.create_override(make(cab_number="C1", start_date=date(2025, 1, 2)), today=TODAY)


def test_update_recomputes_priority_and_allows_clearing_filters(overrides):
    created = overrides.create_override(make(cab_number="C1"), today=TODAY)

    updated = overrides.update_override(created.id, LeaseRateOverrideUpdate(day_of_week=DayOfWeek.MONDAY))
    assert updated.priority == 70

    updated = overrides.update_override(created.id, LeaseRateOverrideUpdate(cab_number=None))
    assert updated.cab_number is None
    assert updated.priority == 20
    assert updated.lease_rate == Decimal("50")


def test_update_does_not_conflict_with_itself(overrides):
    created = overrides.create_override(make(cab_number="C1"), today=TODAY)

    updated = overrides.update_override(
        created.id, LeaseRateOverrideUpdate(lease_rate=Decimal("75"), end_date=date(2025, 6, 30))
    )

    assert updated.lease_rate == Decimal("75")
    assert updated.end_date == date(2025, 6, 30)


def test_update_into_overlap_conflicts(overrides):
    overrides.create_override(make(cab_number="C1", day_of_week=DayOfWeek.MONDAY), today=TODAY)
    other = overrides.create_override(make(cab_number="C1", day_of_week=DayOfWeek.TUESDAY), today=TODAY)

    with pytest.raises(ConflictError):
        overrides.update_override(other.id, LeaseRateOverrideUpdate(day_of_week=DayOfWeek.MONDAY))


def test_activation_rechecks_overlap(overrides):
    first = overrides.create_override(make(cab_number="C1", end_date=date(2025, 1, 31)), today=TODAY)
    overrides.deactivate_override(first.id)
    overrides.create_override(make(cab_number="C1", start_date=date(2025, 1, 15)), today=TODAY)

    with pytest.raises(ConflictError):
        overrides.activate_override(first.id)
    assert overrides.get_override(first.id).is_active is False


def test_end_and_delete(overrides):
    created = overrides.create_override(make(), today=TODAY)

    ended = overrides.end_override(created.id, date(2025, 3, 31))
    assert ended.end_date == date(2025, 3, 31)

    overrides.delete_override(created.id)
    with pytest.raises(NotFoundError):
        overrides.get_override(created.id)


def test_bulk_create_is_independent_per_day(overrides):
    blocker = overrides.create_override(
        make(cab_number="C1", day_of_week=DayOfWeek.MONDAY, start_date=date(2025, 3, 1)), today=TODAY
    )

    result = overrides.create_bulk_overrides(
        BulkOverrideCreate(
            owner_driver_number="O1",
            cab_number="C1",
            days_of_week=[DayOfWeek.MONDAY, DayOfWeek.TUESDAY],
            lease_rate=Decimal("45"),
            start_date=date(2025, 2, 1),
        ),
        today=TODAY,
    )

    assert [o.day_of_week for o in result.created] == ["TUESDAY"]
    assert [f.day_of_week for f in result.failed] == [DayOfWeek.MONDAY]
    assert overrides.get_override(blocker.id).end_date is None


def test_expiring_and_active_listings(overrides):
    soon = overrides.create_override(make(shift_type=ShiftType.DAY, end_date=date(2025, 1, 10)), today=TODAY)
    overrides.create_override(make(shift_type=ShiftType.NIGHT, end_date=date(2025, 2, 15)), today=TODAY)

    expiring = overrides.list_expiring_soon(14, today=TODAY)
    assert [o.id for o in expiring] == [soon.id]

    assert len(overrides.list_active_overrides(date(2025, 1, 5))) == 2
    assert len(overrides.list_active_overrides(date(2025, 1, 20))) == 1


def test_applicable_rate_reads_stored_overrides(overrides, db_session, monday):
    overrides.create_override(make(shift_type=ShiftType.DAY), today=TODAY)
    overrides.create_override(
        make(cab_number="C1", day_of_week=DayOfWeek.MONDAY, lease_rate=Decimal("65")), today=TODAY
    )
    rates = LeaseRateService(db_session)

    # cab + day (70) outranks shift type alone (30)
    assert rates.get_applicable_lease_rate("O1", "C1", "DAY", monday) == Decimal("65")
    assert rates.get_applicable_lease_rate("O1", "C1", "NIGHT", date(2025, 1, 7)) is None


def test_stored_filters_match_regardless_of_case(db_session, cab, monday):
    db_session.add(LeaseRateOverride(
        owner_driver_number="O1", cab_number="c1", shift_type="night", day_of_week="monday",
        lease_rate=Decimal("61"), start_date=TODAY, priority=100,
    ))
    db_session.commit()

    found = LeaseRateOverrideRepository(db_session).find_active_overrides_matching(
        "O1", "C1", "NIGHT", "MONDAY", monday
    )

    assert [o.lease_rate for o in found] == [Decimal("61")]
    assert LeaseRateService(db_session).get_applicable_lease_rate("O1", "C1", "NIGHT", monday) == Decimal("61")
