# app/fleet/schemas.py

"""
Pydantic schemas and enums for drivers, cabs and shifts
"""

from datetime import date
from typing import Optional
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field


# === Enums ===

class CabType(str, PyEnum):
    """Cab category."""
    SEDAN = "SEDAN"
    HANDICAP_VAN = "HANDICAP_VAN"


class ShareType(str, PyEnum):
    """Ownership share category of a cab."""
    VOTING_SHARE = "VOTING_SHARE"
    NON_VOTING_SHARE = "NON_VOTING_SHARE"


class ShiftType(str, PyEnum):
    """Shift within a cab's day."""
    DAY = "DAY"
    NIGHT = "NIGHT"


class DayOfWeek(str, PyEnum):
    """Day names as stored on overrides and rate entries."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, on_date: date) -> "DayOfWeek":
        """Day of week for a calendar date."""
        return list(cls)[on_date.weekday()]


# === Records ===

class ShiftStaticAttributes(BaseModel):
    """The four enumerated properties a shift is matched on."""
    model_config = ConfigDict(frozen=True)

    cab_type: Optional[str] = None
    share_type: Optional[str] = None
    has_airport_license: Optional[bool] = None
    shift_type: Optional[str] = None


class ShiftContext(BaseModel):
    """Everything the rate and profile engines need to know about one shift."""
    model_config = ConfigDict(frozen=True)

    shift_id: int
    cab_number: str
    owner_driver_number: Optional[str] = None
    attributes: ShiftStaticAttributes
    current_profile_id: Optional[int] = None


# === Request / Response Schemas ===

class DriverCreate(BaseModel):
    driver_number: str = Field(..., max_length=50)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    is_owner: bool = False


class DriverResponse(DriverCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool


class CabCreate(BaseModel):
    cab_number: str = Field(..., max_length=50)
    cab_type: CabType
    share_type: Optional[ShareType] = None
    has_airport_license: bool = False
    owner_driver_number: Optional[str] = Field(None, max_length=50)


class CabResponse(CabCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class CabShiftCreate(BaseModel):
    cab_number: str = Field(..., max_length=50)
    shift_type: ShiftType


class CabShiftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cab_id: int
    shift_type: ShiftType
    current_profile_id: Optional[int] = None
