# app/rates/schemas.py

"""
Pydantic schemas for lease rate overrides and lease plans
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.exceptions import ValidationError
from app.fleet.schemas import CabType, DayOfWeek, ShiftType


# === Enums ===

class RateSource(str, PyEnum):
    """Where a quoted lease rate came from."""
    OVERRIDE = "OVERRIDE"
    PLAN = "PLAN"


# === Engine Records ===

class RateOverrideRecord(BaseModel):
    """Immutable view of one lease rate override as the resolver sees it."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    owner_driver_number: str
    cab_number: Optional[str] = None
    shift_type: Optional[str] = None
    day_of_week: Optional[str] = None
    lease_rate: Decimal
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    priority: int = 0
    notes: Optional[str] = None
    created_on: Optional[datetime] = None


class RateEntryRecord(BaseModel):
    """One immutable line of a lease plan."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    plan_id: Optional[int] = None
    cab_type: str
    has_airport_license: bool
    shift_type: str
    day_of_week: str
    base_rate: Decimal
    mileage_rate: Decimal = Decimal("0")

    def total_lease(self, miles_driven: Decimal) -> Decimal:
        """Base rate plus the mileage component for the given distance."""
        if miles_driven is None or miles_driven < 0:
            raise ValidationError("Miles driven cannot be null or negative")
        return self.base_rate + self.mileage_rate * miles_driven


class RatePlanRecord(BaseModel):
    """A dated container of rate entries."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    plan_name: str
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    entries: List[RateEntryRecord] = Field(default_factory=list)


class LeaseRateQuote(BaseModel):
    """Resolved lease for one shift on one date."""
    model_config = ConfigDict(frozen=True)

    source: RateSource
    on_date: date
    base_rate: Decimal
    mileage_rate: Decimal = Decimal("0")
    override_id: Optional[int] = None
    plan_id: Optional[int] = None
    entry_id: Optional[int] = None
    total_lease: Optional[Decimal] = None


# === Override Request / Response Schemas ===

class LeaseRateOverrideBase(BaseModel):
    cab_number: Optional[str] = Field(None, max_length=50)
    shift_type: Optional[ShiftType] = None
    day_of_week: Optional[DayOfWeek] = None
    lease_rate: Decimal = Field(..., ge=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("cab_number")
    @classmethod
    def blank_cab_is_wildcard(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class LeaseRateOverrideCreate(LeaseRateOverrideBase):
    owner_driver_number: str = Field(..., max_length=50)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True


class LeaseRateOverrideUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    cab_number: Optional[str] = Field(None, max_length=50)
    shift_type: Optional[ShiftType] = None
    day_of_week: Optional[DayOfWeek] = None
    lease_rate: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=500)


class EndOverrideRequest(BaseModel):
    end_date: date


class BulkOverrideCreate(BaseModel):
    owner_driver_number: str = Field(..., max_length=50)
    cab_number: Optional[str] = Field(None, max_length=50)
    shift_type: Optional[ShiftType] = None
    days_of_week: List[DayOfWeek] = Field(..., min_length=1)
    lease_rate: Decimal = Field(..., ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)


class LeaseRateOverrideResponse(RateOverrideRecord):
    updated_on: Optional[datetime] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None


class BulkOverrideFailure(BaseModel):
    day_of_week: DayOfWeek
    error: str


class BulkOverrideResult(BaseModel):
    created: List[LeaseRateOverrideResponse] = Field(default_factory=list)
    failed: List[BulkOverrideFailure] = Field(default_factory=list)


# === Lease Plan Schemas ===

class LeaseRateEntryCreate(BaseModel):
    cab_type: CabType
    has_airport_license: bool
    shift_type: ShiftType
    day_of_week: DayOfWeek
    base_rate: Decimal = Field(..., ge=0)
    mileage_rate: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=200)


class LeasePlanCreate(BaseModel):
    plan_name: str = Field(..., max_length=100)
    start_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)
    entries: List[LeaseRateEntryCreate] = Field(default_factory=list)


class LeasePlanUpdate(BaseModel):
    """Only the name, notes and a first end date may change."""
    plan_name: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    end_date: Optional[date] = None


class DeactivatePlanRequest(BaseModel):
    end_date: date


class LeaseRateEntryResponse(RateEntryRecord):
    notes: Optional[str] = None


class LeasePlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    plan_name: str
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None
    entries: List[LeaseRateEntryResponse] = Field(default_factory=list)
