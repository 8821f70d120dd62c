# app/rates/resolver.py

"""
Lease Rate Resolver.

Determines the lease rate for an (owner, cab, shift type, date) tuple:

1. Custom overrides owned by the owner, filtered by cab / shift type / day of
   week wildcards and by their date window. The most specific one wins.
2. When no override applies, the caller falls back to the default lease plan
   active on the date and its entry for the cab category, airport license,
   shift type and day of week.

The resolver owns no I/O. Lookups are injected as collaborators.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol

from app.core.exceptions import NotFoundError
from app.fleet.schemas import DayOfWeek
from app.rates.schemas import (
    LeaseRateQuote, RateEntryRecord, RateOverrideRecord, RatePlanRecord, RateSource,
)
from app.utils.logger import get_logger
from app.utils.temporal import active_on

logger = get_logger(__name__)

CAB_WEIGHT = 50
SHIFT_TYPE_WEIGHT = 30
DAY_OF_WEEK_WEIGHT = 20


# === Collaborator contracts ===

class OverrideLookup(Protocol):
    def find_active_overrides_matching(
        self, owner_driver_number: str, cab_number: Optional[str],
        shift_type: Optional[str], day_of_week: Optional[str], on_date: date,
    ) -> List[RateOverrideRecord]:
        ...


class RatePlanLookup(Protocol):
    def find_plan_active_on(self, on_date: date) -> Optional[RatePlanRecord]:
        ...

    def find_entry(
        self, plan: RatePlanRecord, cab_type: str, has_airport_license: bool,
        shift_type: str, day_of_week: str,
    ) -> Optional[RateEntryRecord]:
        ...


# === Scoring and matching ===

def _is_set(value: Optional[str]) -> bool:
    return value is not None and value != ""


def calculate_priority(
    cab_number: Optional[str], shift_type: Optional[str], day_of_week: Optional[str]
) -> int:
    """
    Specificity score of an override: +50 cab, +30 shift type, +20 day.

    A rule naming more of the three always outranks a broader one, whatever
    order they were created in.
    """
    priority = 0
    if _is_set(cab_number):
        priority += CAB_WEIGHT
    if _is_set(shift_type):
        priority += SHIFT_TYPE_WEIGHT
    if _is_set(day_of_week):
        priority += DAY_OF_WEEK_WEIGHT
    return priority


def _wildcard_equals(rule_value: Optional[str], actual: str) -> bool:
    if not _is_set(rule_value):
        return True
    return rule_value.upper() == actual.upper()


def override_matches(
    override: RateOverrideRecord, cab_number: str, shift_type: str, day_of_week: str
) -> bool:
    """Cab, shift type and day filters: NULL matches anything, otherwise case-insensitive equality."""
    return (
        _wildcard_equals(override.cab_number, cab_number)
        and _wildcard_equals(override.shift_type, shift_type)
        and _wildcard_equals(override.day_of_week, day_of_week)
    )


def override_applies(
    override: RateOverrideRecord, cab_number: str, shift_type: str, on_date: date
) -> bool:
    return (
        active_on(on_date, override.start_date, override.end_date, override.is_active)
        and override_matches(override, cab_number, shift_type, DayOfWeek.of(on_date).value)
    )


def _ranking_key(override: RateOverrideRecord):
    # Ties on priority go to the most recently created, then the newest id
    created = override.created_on.timestamp() if override.created_on else float("-inf")
    return (override.priority, created, override.id or 0)


def pick_winner(candidates: Iterable[RateOverrideRecord]) -> Optional[RateOverrideRecord]:
    """Highest priority wins; ties go to the most recently created."""
    best = None
    for candidate in candidates:
        if best is None or _ranking_key(candidate) > _ranking_key(best):
            best = candidate
    return best


# === Resolvers ===

class LeaseRateResolver:
    """
    Resolves the custom override rate for a shift, or None when the default
    lease plan should be used.
    """

    def __init__(self, overrides: OverrideLookup):
        self.overrides = overrides

    def select_override(
        self, owner_driver_number: str, cab_number: str, shift_type: str, on_date: date
    ) -> Optional[RateOverrideRecord]:
        """Return the winning override record, or None."""
        if not owner_driver_number or not cab_number or not shift_type or on_date is None:
            logger.warning(
                "Invalid parameters for lease rate lookup",
                owner=owner_driver_number, cab=cab_number,
                shift_type=shift_type, on_date=on_date,
            )
            return None

        day_of_week = DayOfWeek.of(on_date).value
        fetched = self.overrides.find_active_overrides_matching(
            owner_driver_number, cab_number, shift_type, day_of_week, on_date
        )
        candidates = [
            o for o in fetched
            if o.owner_driver_number == owner_driver_number
            and override_applies(o, cab_number, shift_type, on_date)
        ]
        logger.debug(
            "Override candidates filtered",
            owner=owner_driver_number, cab=cab_number, shift_type=shift_type,
            day_of_week=day_of_week, fetched=len(fetched), matched=len(candidates),
        )

        winner = pick_winner(candidates)
        if winner is None:
            logger.info(
                "No matching override",
                owner=owner_driver_number, cab=cab_number,
                shift_type=shift_type, on_date=on_date.isoformat(),
            )
            return None

        logger.info(
            "Override matched",
            override_id=winner.id, rate=str(winner.lease_rate), priority=winner.priority,
            cab=winner.cab_number or "ALL", shift_type=winner.shift_type or "ALL",
            day_of_week=winner.day_of_week or "ALL",
        )
        return winner

    def resolve(
        self, owner_driver_number: str, cab_number: str, shift_type: str, on_date: date
    ) -> Optional[Decimal]:
        """Custom lease rate if an override applies, None otherwise."""
        winner = self.select_override(owner_driver_number, cab_number, shift_type, on_date)
        return winner.lease_rate if winner else None


class DefaultRateResolver:
    """Looks up the default rate entry from the lease plan active on a date."""

    def __init__(self, plans: RatePlanLookup):
        self.plans = plans

    def resolve_default(
        self, cab_type: str, has_airport_license: bool, shift_type: str, on_date: date
    ) -> Optional[RateEntryRecord]:
        plan = self.plans.find_plan_active_on(on_date)
        if plan is None:
            logger.warning("No lease plan active", on_date=on_date.isoformat())
            return None
        if not active_on(on_date, plan.start_date, plan.end_date, plan.is_active):
            logger.warning("Lease plan lookup returned a plan outside its window", plan_id=plan.id)
            return None

        entry = self.plans.find_entry(
            plan, cab_type, bool(has_airport_license), shift_type, DayOfWeek.of(on_date).value
        )
        if entry is None:
            logger.warning(
                "No lease rate entry",
                plan_id=plan.id, cab_type=cab_type, has_airport_license=has_airport_license,
                shift_type=shift_type, day_of_week=DayOfWeek.of(on_date).value,
            )
        return entry


def quote_lease(
    overrides: LeaseRateResolver,
    defaults: DefaultRateResolver,
    owner_driver_number: Optional[str],
    cab_number: str,
    cab_type: str,
    has_airport_license: bool,
    shift_type: str,
    on_date: date,
    miles_driven: Optional[Decimal] = None,
) -> LeaseRateQuote:
    """
    Full lease lookup: an applicable override first, the default plan otherwise.

    An override is a flat rate with no mileage component.

    Raises:
        NotFoundError: If neither an override nor a plan entry applies.
    """
    winner = None
    if owner_driver_number:
        winner = overrides.select_override(owner_driver_number, cab_number, shift_type, on_date)

    if winner is not None:
        return LeaseRateQuote(
            source=RateSource.OVERRIDE,
            on_date=on_date,
            base_rate=winner.lease_rate,
            override_id=winner.id,
            total_lease=winner.lease_rate if miles_driven is not None else None,
        )

    entry = defaults.resolve_default(cab_type, has_airport_license, shift_type, on_date)
    if entry is None:
        raise NotFoundError(
            "LeaseRate", None,
            message=f"No lease rate found for cab {cab_number} ({shift_type}) on {on_date.isoformat()}",
        )
    return LeaseRateQuote(
        source=RateSource.PLAN,
        on_date=on_date,
        base_rate=entry.base_rate,
        mileage_rate=entry.mileage_rate,
        plan_id=entry.plan_id,
        entry_id=entry.id,
        total_lease=entry.total_lease(miles_driven) if miles_driven is not None else None,
    )
