# app/rates/repository.py

"""
Data Access Layer for lease rate overrides and lease plans.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.orm import Session

from app.rates.models import LeasePlan, LeaseRateEntry, LeaseRateOverride
from app.rates.schemas import RateEntryRecord, RateOverrideRecord, RatePlanRecord


def _wildcard(column, value: Optional[str]):
    """Column is NULL or blank (matches anything) or equals value, ignoring case."""
    unset = or_(column.is_(None), column == "")
    if value is None:
        return unset
    return or_(unset, func.upper(column) == value.upper())


def _covers(model, on_date: date):
    return and_(
        model.start_date <= on_date,
        or_(model.end_date.is_(None), model.end_date >= on_date),
    )


class LeaseRateOverrideRepository:
    """
    Repository for LeaseRateOverride data access.
    Implements the override lookup used by the resolver.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, override: LeaseRateOverride) -> LeaseRateOverride:
        self.db.add(override)
        self.db.flush()
        self.db.refresh(override)
        return override

    def save(self, override: LeaseRateOverride) -> LeaseRateOverride:
        self.db.flush()
        self.db.refresh(override)
        return override

    def delete(self, override: LeaseRateOverride) -> None:
        self.db.delete(override)
        self.db.flush()

    def get_by_id(self, override_id: int) -> Optional[LeaseRateOverride]:
        return self.db.get(LeaseRateOverride, override_id)

    def find_active_overrides_matching(
        self, owner_driver_number: str, cab_number: Optional[str],
        shift_type: Optional[str], day_of_week: Optional[str], on_date: date,
    ) -> List[RateOverrideRecord]:
        """Active overrides of the owner whose filters and window admit the request."""
        stmt = (
            select(LeaseRateOverride)
            .where(
                LeaseRateOverride.owner_driver_number == owner_driver_number,
                LeaseRateOverride.is_active.is_(True),
                _wildcard(LeaseRateOverride.cab_number, cab_number),
                _wildcard(LeaseRateOverride.shift_type, shift_type),
                _wildcard(LeaseRateOverride.day_of_week, day_of_week),
                _covers(LeaseRateOverride, on_date),
            )
            .order_by(desc(LeaseRateOverride.priority), desc(LeaseRateOverride.created_on))
        )
        return [o.to_record() for o in self.db.execute(stmt).scalars().all()]

    def find_same_key(
        self, owner_driver_number: str, cab_number: Optional[str],
        shift_type: Optional[str], day_of_week: Optional[str],
    ) -> List[LeaseRateOverride]:
        """Active overrides sharing the exact (owner, cab, shift type, day) key."""
        stmt = select(LeaseRateOverride).where(
            LeaseRateOverride.owner_driver_number == owner_driver_number,
            LeaseRateOverride.is_active.is_(True),
            LeaseRateOverride.cab_number.is_(None) if cab_number is None
            else LeaseRateOverride.cab_number == cab_number,
            LeaseRateOverride.shift_type.is_(None) if shift_type is None
            else LeaseRateOverride.shift_type == shift_type,
            LeaseRateOverride.day_of_week.is_(None) if day_of_week is None
            else LeaseRateOverride.day_of_week == day_of_week,
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_open_for_owner_cab(
        self, owner_driver_number: str, cab_number: Optional[str]
    ) -> List[LeaseRateOverride]:
        """Active, open-ended overrides for the owner and cab (NULL cab = all cabs)."""
        stmt = select(LeaseRateOverride).where(
            LeaseRateOverride.owner_driver_number == owner_driver_number,
            LeaseRateOverride.is_active.is_(True),
            LeaseRateOverride.end_date.is_(None),
            LeaseRateOverride.cab_number.is_(None) if cab_number is None
            else LeaseRateOverride.cab_number == cab_number,
        ).order_by(LeaseRateOverride.start_date)
        return list(self.db.execute(stmt).scalars().all())

    def list_for_owner(self, owner_driver_number: str) -> List[LeaseRateOverride]:
        stmt = (
            select(LeaseRateOverride)
            .where(LeaseRateOverride.owner_driver_number == owner_driver_number)
            .order_by(desc(LeaseRateOverride.priority), desc(LeaseRateOverride.created_on))
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_all(self) -> List[LeaseRateOverride]:
        stmt = select(LeaseRateOverride).order_by(
            LeaseRateOverride.owner_driver_number,
            desc(LeaseRateOverride.priority),
            desc(LeaseRateOverride.created_on),
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_active_on(self, on_date: date) -> List[LeaseRateOverride]:
        stmt = select(LeaseRateOverride).where(
            LeaseRateOverride.is_active.is_(True), _covers(LeaseRateOverride, on_date)
        ).order_by(LeaseRateOverride.owner_driver_number, desc(LeaseRateOverride.priority))
        return list(self.db.execute(stmt).scalars().all())

    def list_expiring_between(self, start: date, end: date) -> List[LeaseRateOverride]:
        stmt = select(LeaseRateOverride).where(
            LeaseRateOverride.is_active.is_(True),
            LeaseRateOverride.end_date.is_not(None),
            LeaseRateOverride.end_date >= start,
            LeaseRateOverride.end_date <= end,
        ).order_by(LeaseRateOverride.end_date)
        return list(self.db.execute(stmt).scalars().all())


class LeasePlanRepository:
    """
    Repository for LeasePlan and LeaseRateEntry data access.
    Implements the plan lookup used by the default rate resolver.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, plan: LeasePlan) -> LeasePlan:
        self.db.add(plan)
        self.db.flush()
        self.db.refresh(plan)
        return plan

    def save(self, plan: LeasePlan) -> LeasePlan:
        self.db.flush()
        self.db.refresh(plan)
        return plan

    def get_by_id(self, plan_id: int) -> Optional[LeasePlan]:
        return self.db.get(LeasePlan, plan_id)

    def list_all(self) -> List[LeasePlan]:
        stmt = select(LeasePlan).order_by(desc(LeasePlan.start_date))
        return list(self.db.execute(stmt).scalars().all())

    def get_plan_active_on(self, on_date: date) -> Optional[LeasePlan]:
        stmt = (
            select(LeasePlan)
            .where(LeasePlan.is_active.is_(True), _covers(LeasePlan, on_date))
            .order_by(desc(LeasePlan.start_date))
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_plan_active_on(self, on_date: date) -> Optional[RatePlanRecord]:
        plan = self.get_plan_active_on(on_date)
        return plan.to_record() if plan else None

    def find_entry(
        self, plan: RatePlanRecord, cab_type: str, has_airport_license: bool,
        shift_type: str, day_of_week: str,
    ) -> Optional[RateEntryRecord]:
        stmt = select(LeaseRateEntry).where(
            LeaseRateEntry.plan_id == plan.id,
            LeaseRateEntry.cab_type == cab_type,
            LeaseRateEntry.has_airport_license == bool(has_airport_license),
            LeaseRateEntry.shift_type == shift_type,
            LeaseRateEntry.day_of_week == day_of_week,
        )
        entry = self.db.execute(stmt).scalar_one_or_none()
        return entry.to_record() if entry else None

    def find_expired(self, today: date) -> List[LeasePlan]:
        stmt = select(LeasePlan).where(
            LeasePlan.is_active.is_(True),
            LeasePlan.end_date.is_not(None),
            LeasePlan.end_date < today,
        )
        return list(self.db.execute(stmt).scalars().all())
