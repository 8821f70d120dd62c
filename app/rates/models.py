# app/rates/models.py

"""
Lease rate models - SQLAlchemy 2.x

- LeaseRateOverride: owner-defined rate that supersedes the default plan for
  a narrower scope (cab / shift type / day of week) and date window.
- LeasePlan + LeaseRateEntry: the default dated rate table.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, ForeignKey, Index, Integer, Numeric, String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.fleet.models import AuditMixin
from app.rates.schemas import RateEntryRecord, RateOverrideRecord, RatePlanRecord


class LeaseRateOverride(Base, AuditMixin):
    """
    Custom lease rate for an owner's cab(s).

    A null cab_number, shift_type or day_of_week is a wildcard. priority is
    derived from which of the three are set and is recomputed on every write.
    """
    __tablename__ = "lease_rate_overrides"
    __table_args__ = (
        Index("idx_override_owner_cab", "owner_driver_number", "cab_number"),
        Index("idx_override_dates", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_driver_number: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Owner who set this rate"
    )
    cab_number: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="NULL applies to all of the owner's cabs"
    )
    shift_type: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="DAY, NIGHT or NULL for both"
    )
    day_of_week: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="MONDAY..SUNDAY or NULL for every day"
    )
    lease_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True, comment="NULL means ongoing"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    def to_record(self) -> RateOverrideRecord:
        return RateOverrideRecord.model_validate(self)


class LeasePlan(Base, AuditMixin):
    """
    Dated container of default lease rates.

    Only one plan may cover any given date. Entries are never edited; a rate
    change means closing this plan and opening a new one.
    """
    __tablename__ = "lease_plans"
    __table_args__ = (
        Index("idx_plan_dates", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    plan_name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    entries: Mapped[List["LeaseRateEntry"]] = relationship(
        back_populates="plan", cascade="all, delete-orphan",
        order_by="LeaseRateEntry.id", lazy="selectin",
    )

    def to_record(self) -> RatePlanRecord:
        return RatePlanRecord.model_validate(self)


class LeaseRateEntry(Base):
    """
    One default rate, keyed by cab type + airport license + shift type + day.

    Total lease = base_rate + miles driven x mileage_rate.
    """
    __tablename__ = "lease_rate_entries"
    __table_args__ = (
        UniqueConstraint(
            "plan_id", "cab_type", "has_airport_license", "shift_type", "day_of_week",
            name="uq_rate_entry_key",
        ),
        Index("idx_rate_lookup", "cab_type", "has_airport_license", "shift_type", "day_of_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lease_plans.id", ondelete="CASCADE"), nullable=False
    )
    cab_type: Mapped[str] = mapped_column(String(20), nullable=False)
    has_airport_license: Mapped[bool] = mapped_column(Boolean, nullable=False)
    shift_type: Mapped[str] = mapped_column(String(20), nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(20), nullable=False)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    mileage_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    plan: Mapped["LeasePlan"] = relationship(back_populates="entries")

    def to_record(self) -> RateEntryRecord:
        return RateEntryRecord.model_validate(self)
