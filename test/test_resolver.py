from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.rates.resolver import (
    DefaultRateResolver, LeaseRateResolver, calculate_priority, pick_winner, quote_lease,
)
from app.rates.schemas import RateEntryRecord, RateOverrideRecord, RatePlanRecord, RateSource

MONDAY = date(2025, 1, 6)


class FakeOverrides:
    """Returns everything it holds; the resolver must do its own filtering."""

    def __init__(self, *overrides):
        self.overrides = list(overrides)

    def find_active_overrides_matching(self, owner_driver_number, cab_number, shift_type, day_of_week, on_date):
        return list(self.overrides)


class FakePlans:
    def __init__(self, plan=None):
        self.plan = plan

    def find_plan_active_on(self, on_date):
        return self.plan

    def find_entry(self, plan, cab_type, has_airport_license, shift_type, day_of_week):
        for entry in plan.entries:
            if (entry.cab_type, entry.has_airport_license, entry.shift_type, entry.day_of_week) == (
                cab_type, has_airport_license, shift_type, day_of_week
            ):
                return entry
        return None


def override(id, rate, cab=None, shift=None, day=None, owner="O1", start=date(2025, 1, 1),
             end=None, is_active=True, created_on=None, priority=None):
    return RateOverrideRecord(
        id=id,
        owner_driver_number=owner,
        cab_number=cab,
        shift_type=shift,
        day_of_week=day,
        lease_rate=Decimal(rate),
        start_date=start,
        end_date=end,
        is_active=is_active,
        priority=calculate_priority(cab, shift, day) if priority is None else priority,
        created_on=created_on,
    )


@pytest.mark.parametrize(
    "cab, shift, day, expected",
    [
        (None, None, None, 0),
        ("C1", None, None, 50),
        (None, "DAY", None, 30),
        (None, None, "MONDAY", 20),
        (None, "DAY", "MONDAY", 50),
        ("C1", None, "MONDAY", 70),
        ("C1", "DAY", None, 80),
        ("C1", "DAY", "MONDAY", 100),
        ("", "", "", 0),
    ],
)
def test_calculate_priority(cab, shift, day, expected):
    assert calculate_priority(cab, shift, day) == expected


def test_stored_priority_decides_between_matching_overrides():
    a = override(1, "50", shift="DAY", priority=80)
    b = override(2, "65", cab="C1", day="MONDAY", priority=70)
    resolver = LeaseRateResolver(FakeOverrides(b, a))

    assert resolver.select_override("O1", "C1", "DAY", MONDAY).id == 1
    assert resolver.resolve("O1", "C1", "DAY", MONDAY) == Decimal("50")


def test_higher_priority_wins_regardless_of_creation_order():
    a = override(1, "50", shift="DAY", cab="C1", created_on=datetime(2024, 1, 1, tzinfo=timezone.utc))
    b = override(2, "65", cab="C1", day="MONDAY", created_on=datetime(2024, 6, 1, tzinfo=timezone.utc))
    resolver = LeaseRateResolver(FakeOverrides(b, a))

    assert resolver.resolve("O1", "C1", "DAY", MONDAY) == Decimal("50")


def test_shift_specific_rule_beats_cab_and_day_rule():
    # A: shift DAY only scores 30; B: cab + day scores 70
    a = override(1, "50", shift="DAY")
    b = override(2, "65", cab="C1", day="MONDAY")

    assert pick_winner([a, b]).id == 2


def test_tie_goes_to_most_recently_created():
    older = override(1, "40", cab="C1", created_on=datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = override(2, "45", cab="C1", created_on=datetime(2024, 6, 1, tzinfo=timezone.utc))
    resolver = LeaseRateResolver(FakeOverrides(newer, older))

    assert resolver.resolve("O1", "C1", "NIGHT", MONDAY) == Decimal("45")


def test_wildcard_matching_is_case_insensitive():
    resolver = LeaseRateResolver(FakeOverrides(override(1, "55", cab="c1", shift="day", day="monday")))

    assert resolver.resolve("O1", "C1", "DAY", MONDAY) == Decimal("55")


def test_non_matching_overrides_are_ignored():
    resolver = LeaseRateResolver(FakeOverrides(
        override(1, "10", owner="O2"),
        override(2, "20", cab="C2"),
        override(3, "30", shift="NIGHT"),
        override(4, "40", day="TUESDAY"),
        override(5, "50", is_active=False),
        override(6, "60", start=date(2025, 1, 7)),
        override(7, "70", end=date(2025, 1, 5)),
    ))

    assert resolver.resolve("O1", "C1", "DAY", MONDAY) is None


def test_override_window_is_inclusive():
    resolver = LeaseRateResolver(FakeOverrides(override(1, "25", start=MONDAY, end=MONDAY)))

    assert resolver.resolve("O1", "C1", "DAY", MONDAY) == Decimal("25")


@pytest.mark.parametrize(
    "owner, cab, shift, on_date",
    [(None, "C1", "DAY", MONDAY), ("O1", "", "DAY", MONDAY), ("O1", "C1", None, MONDAY), ("O1", "C1", "DAY", None)],
)
def test_missing_parameters_resolve_to_none(owner, cab, shift, on_date):
    resolver = LeaseRateResolver(FakeOverrides(override(1, "50")))

    assert resolver.resolve(owner, cab, shift, on_date) is None


# --- Default plan fallback ---

def plan_with_monday_sedan():
    entry = RateEntryRecord(
        id=11, plan_id=3, cab_type="SEDAN", has_airport_license=True, shift_type="DAY",
        day_of_week="MONDAY", base_rate=Decimal("80.00"), mileage_rate=Decimal("0.2500"),
    )
    return RatePlanRecord(id=3, plan_name="2025", start_date=date(2025, 1, 1), entries=[entry])


def test_quote_prefers_override():
    quote = quote_lease(
        LeaseRateResolver(FakeOverrides(override(9, "50", shift="DAY"))),
        DefaultRateResolver(FakePlans(plan_with_monday_sedan())),
        "O1", "C1", "SEDAN", True, "DAY", MONDAY, miles_driven=Decimal("100"),
    )

    assert quote.source == RateSource.OVERRIDE
    assert quote.override_id == 9
    assert quote.total_lease == Decimal("50")


def test_quote_falls_back_to_plan_with_mileage():
    quote = quote_lease(
        LeaseRateResolver(FakeOverrides()),
        DefaultRateResolver(FakePlans(plan_with_monday_sedan())),
        "O1", "C1", "SEDAN", True, "DAY", MONDAY, miles_driven=Decimal("100"),
    )

    assert quote.source == RateSource.PLAN
    assert quote.entry_id == 11
    assert quote.base_rate == Decimal("80.00")
    assert quote.total_lease == Decimal("105.0000")


def test_quote_without_owner_uses_plan():
    quote = quote_lease(
        LeaseRateResolver(FakeOverrides(override(9, "50"))),
        DefaultRateResolver(FakePlans(plan_with_monday_sedan())),
        None, "C1", "SEDAN", True, "DAY", MONDAY,
    )

    assert quote.source == RateSource.PLAN
    assert quote.total_lease is None


def test_quote_raises_when_nothing_applies():
    with pytest.raises(NotFoundError):
        quote_lease(
            LeaseRateResolver(FakeOverrides()),
            DefaultRateResolver(FakePlans(plan_with_monday_sedan())),
            "O1", "C1", "SEDAN", False, "DAY", MONDAY,
        )
    with pytest.raises(NotFoundError):
        quote_lease(
            LeaseRateResolver(FakeOverrides()),
            DefaultRateResolver(FakePlans(None)),
            "O1", "C1", "SEDAN", True, "DAY", MONDAY,
        )


def test_default_resolver_ignores_plan_outside_window():
    plan = plan_with_monday_sedan().model_copy(update={"end_date": date(2025, 1, 5)})

    assert DefaultRateResolver(FakePlans(plan)).resolve_default("SEDAN", True, "DAY", MONDAY) is None


def test_total_lease_rejects_negative_miles():
    entry = plan_with_monday_sedan().entries[0]
    with pytest.raises(ValidationError):
        entry.total_lease(Decimal("-1"))
