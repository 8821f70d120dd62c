# app/rates/services.py

"""
Business Logic Layer for lease rates.

Write paths run inside one transaction each: every check (owner, cab, date
range, overlap) completes before the first row is touched.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Set, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db, transaction
from app.core.exceptions import (
    FleetBaseException, NotFoundError, ValidationError,
)
from app.fleet.models import Driver
from app.fleet.repository import FleetRepository
from app.rates.models import LeasePlan, LeaseRateEntry, LeaseRateOverride
from app.rates.repository import LeasePlanRepository, LeaseRateOverrideRepository
from app.rates.resolver import (
    DefaultRateResolver, LeaseRateResolver, calculate_priority, quote_lease,
)
from app.rates.schemas import (
    BulkOverrideCreate, BulkOverrideFailure, BulkOverrideResult,
    LeasePlanCreate, LeasePlanUpdate, LeaseRateEntryCreate,
    LeaseRateOverrideCreate, LeaseRateOverrideResponse, LeaseRateOverrideUpdate,
    LeaseRateQuote,
)
from app.utils.logger import get_logger
from app.utils.temporal import (
    DateWindow, day_before, ensure_no_overlap, validate_range,
)

logger = get_logger(__name__)


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


def _describe_override(o) -> str:
    end = o.end_date.isoformat() if o.end_date else "ongoing"
    return f"override {o.id} ({o.start_date.isoformat()} to {end})"


def _describe_plan(p) -> str:
    end = p.end_date.isoformat() if p.end_date else "ongoing"
    return f"lease plan {p.id} ({p.start_date.isoformat()} to {end})"


class LeaseRateOverrideService:
    """
    Service for managing custom lease rate overrides.
    """

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.repo = LeaseRateOverrideRepository(db)
        self.fleet = FleetRepository(db)

    # === Validation helpers ===

    def _validate_owner(self, owner_driver_number: str) -> Driver:
        # Locking the owner row serialises concurrent override writes per owner
        driver = self.fleet.get_driver_by_number(owner_driver_number, for_update=True)
        if not driver:
            raise NotFoundError("Owner", owner_driver_number)
        if not driver.is_owner:
            raise ValidationError(f"Driver {owner_driver_number} is not an owner")
        return driver

    def _validate_cab(self, cab_number: Optional[str], owner_driver_number: str) -> None:
        if cab_number is None:
            return
        cab = self.fleet.get_cab_by_number(cab_number)
        if not cab:
            raise NotFoundError("Cab", cab_number)
        if cab.owner_driver_number and cab.owner_driver_number != owner_driver_number:
            raise ValidationError(
                f"Cab {cab_number} is not owned by {owner_driver_number}",
                {"cab_number": cab_number, "owner_driver_number": cab.owner_driver_number},
            )

    def _get_or_raise(self, override_id: int) -> LeaseRateOverride:
        override = self.repo.get_by_id(override_id)
        if not override:
            raise NotFoundError("LeaseRateOverride", override_id)
        return override

    def _autoclose_candidates(
        self, owner_driver_number: str, cab_number: Optional[str], start: date, today: date
    ) -> List[LeaseRateOverride]:
        """
        Open overrides for the same owner and cab that a new override starting
        on `start` ends automatically.

        Only starts earlier than today + the auto-close window qualify; a start
        further out leaves the current override alone so future changes can be
        scheduled.
        """
        window_end = today + timedelta(days=settings.override_autoclose_window_days)
        if start >= window_end:
            return []
        return [
            o for o in self.repo.find_open_for_owner_cab(owner_driver_number, cab_number)
            if o.start_date < start
        ]

    def _check_key_overlap(
        self, owner_driver_number: str, cab_number: Optional[str],
        shift_type: Optional[str], day_of_week: Optional[str],
        start: date, end: Optional[date], exclude_id: Optional[int] = None,
        pending_ends: Optional[dict] = None,
    ) -> None:
        pending_ends = pending_ends or {}
        windows = [
            DateWindow(o.id, o.start_date, pending_ends.get(o.id, o.end_date))
            for o in self.repo.find_same_key(owner_driver_number, cab_number, shift_type, day_of_week)
        ]
        ensure_no_overlap(windows, start, end, exclude_id=exclude_id, describe=_describe_override)

    # === Write Operations ===

    def create_override(
        self, data: LeaseRateOverrideCreate, created_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LeaseRateOverride:
        """
        Create a new lease rate override.

        Business Rules:
        1. Owner must exist and be an owner; a named cab must exist
        2. end_date must not precede start_date (start defaults to today)
        3. Priority is derived from specificity, never taken from input
        4. A start inside the auto-close window ends the open override for
           the same owner and cab on the day before
        5. No remaining overlap with an active override of the same key

        Raises:
            NotFoundError: Owner or cab missing
            ValidationError: Bad date range, not an owner
            ConflictError: Overlapping override for the same key
        """
        today = today or date.today()
        cab_number = data.cab_number
        shift_type = _enum_value(data.shift_type)
        day_of_week = _enum_value(data.day_of_week)
        start = data.start_date or today

        logger.info(
            "Creating lease rate override",
            owner=data.owner_driver_number, cab=cab_number or "ALL",
            shift_type=shift_type or "ALL", day_of_week=day_of_week or "ALL",
            rate=str(data.lease_rate), start_date=start.isoformat(),
        )

        with transaction(self.db):
            self._validate_owner(data.owner_driver_number)
            self._validate_cab(cab_number, data.owner_driver_number)
            validate_range(start, data.end_date)

            to_close = self._autoclose_candidates(data.owner_driver_number, cab_number, start, today)
            pending_ends = {o.id: day_before(start) for o in to_close}
            if data.is_active:
                self._check_key_overlap(
                    data.owner_driver_number, cab_number, shift_type, day_of_week,
                    start, data.end_date, pending_ends=pending_ends,
                )

            for prior in to_close:
                prior.end_date = pending_ends[prior.id]
                prior.modified_by = created_by
                logger.info(
                    "Auto-ended previous override",
                    override_id=prior.id, end_date=prior.end_date.isoformat(),
                )

            override = self.repo.create(LeaseRateOverride(
                owner_driver_number=data.owner_driver_number,
                cab_number=cab_number,
                shift_type=shift_type,
                day_of_week=day_of_week,
                lease_rate=data.lease_rate,
                start_date=start,
                end_date=data.end_date,
                is_active=data.is_active,
                priority=calculate_priority(cab_number, shift_type, day_of_week),
                notes=data.notes,
                created_by=created_by,
                modified_by=created_by,
            ))

        logger.info("Created lease rate override", override_id=override.id, priority=override.priority)
        return override

    def update_override(
        self, override_id: int, data: LeaseRateOverrideUpdate, updated_by: Optional[str] = None
    ) -> LeaseRateOverride:
        """
        Partially update an override. Fields sent as null clear a filter back to
        a wildcard. Priority is recomputed and the overlap check excludes the
        override itself.
        """
        logger.info("Updating lease rate override", override_id=override_id)
        changes = data.model_dump(exclude_unset=True)

        with transaction(self.db):
            override = self._get_or_raise(override_id)

            cab_number = changes.get("cab_number", override.cab_number) or None
            shift_type = _enum_value(changes.get("shift_type", override.shift_type))
            day_of_week = _enum_value(changes.get("day_of_week", override.day_of_week))
            start = changes.get("start_date") or override.start_date
            end = changes["end_date"] if "end_date" in changes else override.end_date
            is_active = changes.get("is_active", override.is_active)
            if is_active is None:
                is_active = override.is_active

            validate_range(start, end)
            if cab_number != override.cab_number:
                self._validate_cab(cab_number, override.owner_driver_number)
            if is_active:
                self._check_key_overlap(
                    override.owner_driver_number, cab_number, shift_type, day_of_week,
                    start, end, exclude_id=override.id,
                )

            override.cab_number = cab_number
            override.shift_type = shift_type
            override.day_of_week = day_of_week
            override.start_date = start
            override.end_date = end
            override.is_active = is_active
            if changes.get("lease_rate") is not None:
                override.lease_rate = changes["lease_rate"]
            if "notes" in changes:
                override.notes = changes["notes"]
            override.priority = calculate_priority(cab_number, shift_type, day_of_week)
            override.modified_by = updated_by
            override = self.repo.save(override)

        logger.info("Updated lease rate override", override_id=override.id, priority=override.priority)
        return override

    def end_override(
        self, override_id: int, end_date: date, updated_by: Optional[str] = None
    ) -> LeaseRateOverride:
        """Set an override's end date; the record stays for audit."""
        with transaction(self.db):
            override = self._get_or_raise(override_id)
            validate_range(override.start_date, end_date)
            if override.is_active:
                self._check_key_overlap(
                    override.owner_driver_number, override.cab_number,
                    override.shift_type, override.day_of_week,
                    override.start_date, end_date, exclude_id=override.id,
                )
            override.end_date = end_date
            override.modified_by = updated_by
            override = self.repo.save(override)
        logger.info("Ended lease rate override", override_id=override_id, end_date=end_date.isoformat())
        return override

    def deactivate_override(self, override_id: int, updated_by: Optional[str] = None) -> LeaseRateOverride:
        """Soft delete: the override stops applying but stays on record."""
        with transaction(self.db):
            override = self._get_or_raise(override_id)
            override.is_active = False
            override.modified_by = updated_by
            override = self.repo.save(override)
        logger.info("Deactivated lease rate override", override_id=override_id)
        return override

    def activate_override(self, override_id: int, updated_by: Optional[str] = None) -> LeaseRateOverride:
        with transaction(self.db):
            override = self._get_or_raise(override_id)
            if not override.is_active:
                self._check_key_overlap(
                    override.owner_driver_number, override.cab_number,
                    override.shift_type, override.day_of_week,
                    override.start_date, override.end_date, exclude_id=override.id,
                )
            override.is_active = True
            override.modified_by = updated_by
            override = self.repo.save(override)
        logger.info("Activated lease rate override", override_id=override_id)
        return override

    def delete_override(self, override_id: int) -> None:
        with transaction(self.db):
            override = self._get_or_raise(override_id)
            self.repo.delete(override)
        logger.info("Deleted lease rate override", override_id=override_id)

    def create_bulk_overrides(
        self, data: BulkOverrideCreate, created_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> BulkOverrideResult:
        """
        One override per requested day of week, each in its own transaction.
        A failing day is reported and does not undo the others.
        """
        logger.info(
            "Creating bulk overrides",
            owner=data.owner_driver_number, days=[d.value for d in data.days_of_week],
        )
        result = BulkOverrideResult()
        for day in data.days_of_week:
            try:
                override = self.create_override(
                    LeaseRateOverrideCreate(
                        owner_driver_number=data.owner_driver_number,
                        cab_number=data.cab_number,
                        shift_type=data.shift_type,
                        day_of_week=day,
                        lease_rate=data.lease_rate,
                        start_date=data.start_date,
                        end_date=data.end_date,
                        notes=data.notes,
                    ),
                    created_by=created_by,
                    today=today,
                )
                result.created.append(LeaseRateOverrideResponse.model_validate(override))
            except FleetBaseException as e:
                logger.warning("Bulk override day failed", day_of_week=day.value, error=e.message)
                result.failed.append(BulkOverrideFailure(day_of_week=day, error=e.message))
        return result

    # === Read Operations ===

    def get_override(self, override_id: int) -> LeaseRateOverride:
        return self._get_or_raise(override_id)

    def list_owner_overrides(self, owner_driver_number: str) -> List[LeaseRateOverride]:
        return self.repo.list_for_owner(owner_driver_number)

    def list_all_overrides(self) -> List[LeaseRateOverride]:
        return self.repo.list_all()

    def list_active_overrides(self, on_date: Optional[date] = None) -> List[LeaseRateOverride]:
        return self.repo.list_active_on(on_date or date.today())

    def list_expiring_soon(self, days: int, today: Optional[date] = None) -> List[LeaseRateOverride]:
        today = today or date.today()
        return self.repo.list_expiring_between(today, today + timedelta(days=days))


class LeasePlanService:
    """
    Service for default lease plans.

    Plans are never deleted and their entries never edited; a rate change
    means closing the current plan and creating a new one.
    """

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.repo = LeasePlanRepository(db)

    def _get_or_raise(self, plan_id: int) -> LeasePlan:
        plan = self.repo.get_by_id(plan_id)
        if not plan:
            raise NotFoundError("LeasePlan", plan_id)
        return plan

    def _ensure_no_plan_overlap(self, start: date, end: Optional[date], exclude_id: Optional[int] = None):
        ensure_no_overlap(
            self.repo.list_all(), start, end, exclude_id=exclude_id, describe=_describe_plan
        )

    @staticmethod
    def _entry_key(entry) -> Tuple[str, bool, str, str]:
        return (
            _enum_value(entry.cab_type), bool(entry.has_airport_license),
            _enum_value(entry.shift_type), _enum_value(entry.day_of_week),
        )

    def _build_entries(
        self, entries: List[LeaseRateEntryCreate], existing: Set[Tuple[str, bool, str, str]]
    ) -> List[LeaseRateEntry]:
        seen = set(existing)
        built = []
        for entry in entries:
            key = self._entry_key(entry)
            if key in seen:
                raise ValidationError(
                    "Duplicate lease rate entry for plan",
                    {"cab_type": key[0], "has_airport_license": key[1],
                     "shift_type": key[2], "day_of_week": key[3]},
                )
            seen.add(key)
            built.append(LeaseRateEntry(
                cab_type=key[0], has_airport_license=key[1],
                shift_type=key[2], day_of_week=key[3],
                base_rate=entry.base_rate, mileage_rate=entry.mileage_rate,
                notes=entry.notes,
            ))
        return built

    def create_plan(self, data: LeasePlanCreate, created_by: Optional[str] = None) -> LeasePlan:
        """
        Create a plan with its entries.

        Raises:
            ValidationError: End before start, duplicate entry key
            ConflictError: Window overlaps another plan
        """
        logger.info("Creating lease plan", plan_name=data.plan_name, start_date=data.start_date.isoformat())
        with transaction(self.db):
            validate_range(data.start_date, data.end_date)
            self._ensure_no_plan_overlap(data.start_date, data.end_date)
            plan = LeasePlan(
                plan_name=data.plan_name,
                start_date=data.start_date,
                end_date=data.end_date,
                is_active=True,
                notes=data.notes,
                created_by=created_by,
                modified_by=created_by,
            )
            plan.entries = self._build_entries(data.entries, set())
            plan = self.repo.create(plan)
        logger.info("Created lease plan", plan_id=plan.id, entries=len(plan.entries))
        return plan

    def update_plan(
        self, plan_id: int, data: LeasePlanUpdate, updated_by: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LeasePlan:
        """
        Update only the name, the notes, or set the end date for the first time.
        """
        today = today or date.today()
        with transaction(self.db):
            plan = self._get_or_raise(plan_id)
            if data.end_date is not None:
                if plan.end_date is not None:
                    raise ValidationError("Cannot change end date once set. Create new plan instead.")
                validate_range(plan.start_date, data.end_date)
                self._ensure_no_plan_overlap(plan.start_date, data.end_date, exclude_id=plan.id)
                plan.end_date = data.end_date
                if data.end_date < today:
                    plan.is_active = False
            if data.plan_name is not None:
                plan.plan_name = data.plan_name
            if data.notes is not None:
                plan.notes = data.notes
            plan.modified_by = updated_by
            plan = self.repo.save(plan)
        logger.info("Updated lease plan", plan_id=plan_id)
        return plan

    def deactivate_plan(self, plan_id: int, end_date: date, updated_by: Optional[str] = None) -> LeasePlan:
        with transaction(self.db):
            plan = self._get_or_raise(plan_id)
            if not plan.is_active:
                raise ValidationError(f"Lease plan {plan_id} is already inactive")
            validate_range(plan.start_date, end_date)
            self._ensure_no_plan_overlap(plan.start_date, end_date, exclude_id=plan.id)
            plan.end_date = end_date
            plan.is_active = False
            plan.modified_by = updated_by
            plan = self.repo.save(plan)
        logger.info("Deactivated lease plan", plan_id=plan_id, end_date=end_date.isoformat())
        return plan

    def add_entries(self, plan_id: int, entries: List[LeaseRateEntryCreate]) -> LeasePlan:
        logger.info("Adding lease rate entries", plan_id=plan_id, count=len(entries))
        with transaction(self.db):
            plan = self._get_or_raise(plan_id)
            existing = {self._entry_key(e) for e in plan.entries}
            plan.entries.extend(self._build_entries(entries, existing))
            plan = self.repo.save(plan)
        return plan

    def delete_plan(self, plan_id: int) -> None:
        raise ValidationError(
            "Lease plans cannot be deleted (audit trail requirement). Use deactivate instead."
        )

    def update_entry(self, entry_id: int) -> None:
        raise ValidationError(
            "Lease rates cannot be edited. Create a new plan with new rates instead."
        )

    def delete_entry(self, entry_id: int) -> None:
        raise ValidationError(
            "Lease rates cannot be deleted. Create a new plan with new rates instead."
        )

    def get_plan(self, plan_id: int) -> LeasePlan:
        return self._get_or_raise(plan_id)

    def list_plans(self) -> List[LeasePlan]:
        return self.repo.list_all()

    def get_plan_active_on(self, on_date: date) -> Optional[LeasePlan]:
        return self.repo.get_plan_active_on(on_date)

    def auto_deactivate_expired_plans(self, today: Optional[date] = None) -> int:
        """Switch off every active plan whose end date has passed."""
        today = today or date.today()
        with transaction(self.db):
            expired = self.repo.find_expired(today)
            for plan in expired:
                plan.is_active = False
                logger.info("Auto-deactivated lease plan", plan_id=plan.id)
        if expired:
            logger.info("Auto-deactivated expired plans", count=len(expired))
        return len(expired)


class LeaseRateService:
    """
    Read-side lease lookups: override first, default plan otherwise.
    """

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.fleet = FleetRepository(db)
        self.overrides = LeaseRateResolver(LeaseRateOverrideRepository(db))
        self.defaults = DefaultRateResolver(LeasePlanRepository(db))

    def get_applicable_lease_rate(
        self, owner_driver_number: str, cab_number: str, shift_type: str, on_date: date
    ) -> Optional[Decimal]:
        """Custom lease rate if an override applies, None otherwise."""
        return self.overrides.resolve(owner_driver_number, cab_number, shift_type, on_date)

    def quote_for_shift(
        self, shift_id: int, on_date: date, miles_driven: Optional[Decimal] = None
    ) -> LeaseRateQuote:
        """
        Resolve the lease for a stored shift on a date.

        Raises:
            NotFoundError: Unknown shift, or no override and no plan entry
        """
        context = self.fleet.find_shift_context(shift_id)
        if context is None:
            raise NotFoundError("Shift", shift_id)
        attrs = context.attributes
        quote = quote_lease(
            self.overrides, self.defaults,
            owner_driver_number=context.owner_driver_number,
            cab_number=context.cab_number,
            cab_type=attrs.cab_type,
            has_airport_license=bool(attrs.has_airport_license),
            shift_type=attrs.shift_type,
            on_date=on_date,
            miles_driven=miles_driven,
        )
        logger.info(
            "Quoted lease", shift_id=shift_id, on_date=on_date.isoformat(),
            source=quote.source.value, base_rate=str(quote.base_rate),
        )
        return quote
