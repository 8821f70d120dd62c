# app/attributes/schemas.py

"""
Pydantic schemas for attribute types and shift attribute values
"""

from datetime import date, datetime
from typing import Optional
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field


class AttributeCategory(str, PyEnum):
    LICENSE = "LICENSE"
    EQUIPMENT = "EQUIPMENT"
    TYPE = "TYPE"
    PERMIT = "PERMIT"
    CERTIFICATION = "CERTIFICATION"


class AttributeDataType(str, PyEnum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    DATE = "DATE"
    BOOLEAN = "BOOLEAN"


# === Attribute Types ===

class AttributeTypeCreate(BaseModel):
    attribute_code: str = Field(..., max_length=50, description="Unique code, e.g. TRANSPONDER")
    attribute_name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: AttributeCategory
    data_type: AttributeDataType = AttributeDataType.STRING
    requires_value: bool = False
    validation_pattern: Optional[str] = Field(None, max_length=200)
    help_text: Optional[str] = Field(None, max_length=500)


class AttributeTypeUpdate(BaseModel):
    attribute_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[AttributeCategory] = None
    requires_value: Optional[bool] = None
    validation_pattern: Optional[str] = Field(None, max_length=200)
    help_text: Optional[str] = Field(None, max_length=500)


class AttributeTypeResponse(AttributeTypeCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool
    created_on: Optional[datetime] = None


# === Shift Attribute Values ===

class AssignAttributeRequest(BaseModel):
    attribute_type_id: int
    attribute_value: Optional[str] = Field(None, max_length=200)
    start_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)


class EndAttributeRequest(BaseModel):
    end_date: date


class ShiftAttributeValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shift_id: int
    attribute_type_id: int
    attribute_value: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
