# app/profiles/schemas.py

"""
Pydantic schemas for shift profiles, their attribute requirements and
profile assignments
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.fleet.schemas import CabType, ShareType, ShiftType


# === Engine Records ===

class AttributeRequirementRecord(BaseModel):
    """
    One dynamic attribute rule of a profile.

    is_required True means the shift must carry the attribute, False means it
    must not. expected_value narrows a required attribute to one exact value.
    """
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    profile_id: Optional[int] = None
    attribute_type_id: int
    is_required: bool = True
    expected_value: Optional[str] = None


class ShiftProfileRecord(BaseModel):
    """
    Immutable view of a profile. A None static filter matches any value.
    """
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    profile_code: str
    profile_name: str
    cab_type: Optional[str] = None
    share_type: Optional[str] = None
    has_airport_license: Optional[bool] = None
    shift_type: Optional[str] = None
    category: Optional[str] = None
    color_code: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    is_system_profile: bool = False
    usage_count: int = 0
    requirements: List[AttributeRequirementRecord] = Field(default_factory=list)


class MatchResult(BaseModel):
    """Outcome of checking one shift against one profile, with the reasons it failed."""
    model_config = ConfigDict(frozen=True)

    shift_id: int
    profile_id: int
    on_date: date
    matched: bool
    static_match: bool
    failed_static_fields: List[str] = Field(default_factory=list)
    failed_requirements: List[AttributeRequirementRecord] = Field(default_factory=list)


# === Request Schemas ===

class ProfileRequirementCreate(BaseModel):
    attribute_type_id: int
    is_required: bool = True
    expected_value: Optional[str] = Field(None, max_length=200)

    @field_validator("expected_value")
    @classmethod
    def blank_is_any_value(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class ShiftProfileCreate(BaseModel):
    profile_code: str = Field(..., max_length=50)
    profile_name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    cab_type: Optional[CabType] = None
    share_type: Optional[ShareType] = None
    has_airport_license: Optional[bool] = None
    shift_type: Optional[ShiftType] = None
    category: Optional[str] = Field(None, max_length=50)
    color_code: Optional[str] = Field(None, max_length=10)
    display_order: int = 0
    is_system_profile: bool = False
    requirements: List[ProfileRequirementCreate] = Field(default_factory=list)


class ShiftProfileUpdate(BaseModel):
    """
    Partial update. Static filters sent as null become wildcards. A supplied
    requirements list replaces the existing one.
    """
    profile_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    cab_type: Optional[CabType] = None
    share_type: Optional[ShareType] = None
    has_airport_license: Optional[bool] = None
    shift_type: Optional[ShiftType] = None
    category: Optional[str] = Field(None, max_length=50)
    color_code: Optional[str] = Field(None, max_length=10)
    display_order: Optional[int] = None
    requirements: Optional[List[ProfileRequirementCreate]] = None


class AssignProfileRequest(BaseModel):
    profile_id: int
    start_date: date
    reason: Optional[str] = Field(None, max_length=500)


class EndAssignmentRequest(BaseModel):
    end_date: date


# === Response Schemas ===

class ProfileRequirementResponse(AttributeRequirementRecord):
    pass


class ShiftProfileResponse(ShiftProfileRecord):
    description: Optional[str] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None


class ShiftProfileAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shift_id: int
    profile_id: int
    start_date: date
    end_date: Optional[date] = None
    reason: Optional[str] = None
    assigned_by: Optional[str] = None
    ended_by: Optional[str] = None
    created_on: Optional[datetime] = None
