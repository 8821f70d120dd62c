# app/attributes/services.py

"""
Business Logic Layer for the dynamic attribute catalogue and the attributes
shifts hold over time.
"""

import re
from datetime import date
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from app.attributes.models import AttributeType, ShiftAttributeValue
from app.attributes.repository import AttributeRepository
from app.attributes.schemas import (
    AssignAttributeRequest, AttributeTypeCreate, AttributeTypeUpdate,
)
from app.core.db import get_db, transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.fleet.repository import FleetRepository
from app.utils.logger import get_logger
from app.utils.temporal import ensure_no_overlap, validate_range

logger = get_logger(__name__)


def _describe_value(v) -> str:
    end = v.end_date.isoformat() if v.end_date else "ongoing"
    return f"attribute value {v.id} ({v.start_date.isoformat()} to {end})"


class AttributeService:
    """
    Service for attribute types and shift attribute values.
    """

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.repo = AttributeRepository(db)
        self.fleet = FleetRepository(db)

    # === Attribute Types ===

    def get_type(self, type_id: int) -> AttributeType:
        attribute_type = self.repo.get_type(type_id)
        if not attribute_type:
            raise NotFoundError("AttributeType", type_id)
        return attribute_type

    def list_types(self, active_only: bool = False) -> List[AttributeType]:
        return self.repo.list_types(active_only=active_only)

    def create_type(self, data: AttributeTypeCreate, created_by: Optional[str] = None) -> AttributeType:
        code = data.attribute_code.strip().upper()
        with transaction(self.db):
            if self.repo.get_type_by_code(code):
                raise ValidationError(f"Attribute code {code} already exists")
            if data.validation_pattern:
                self._compile(data.validation_pattern)
            attribute_type = self.repo.add(AttributeType(
                attribute_code=code,
                attribute_name=data.attribute_name,
                description=data.description,
                category=data.category.value,
                data_type=data.data_type.value,
                requires_value=data.requires_value,
                validation_pattern=data.validation_pattern,
                help_text=data.help_text,
                is_active=True,
                created_by=created_by,
            ))
        logger.info("Created attribute type", attribute_type_id=attribute_type.id, code=code)
        return attribute_type

    def update_type(
        self, type_id: int, data: AttributeTypeUpdate, updated_by: Optional[str] = None
    ) -> AttributeType:
        changes = data.model_dump(exclude_unset=True)
        with transaction(self.db):
            attribute_type = self.get_type(type_id)
            if changes.get("validation_pattern"):
                self._compile(changes["validation_pattern"])
            for field, value in changes.items():
                if field in ("attribute_name", "category") and value is None:
                    continue
                setattr(attribute_type, field, value.value if hasattr(value, "value") else value)
            attribute_type.modified_by = updated_by
            attribute_type = self.repo.save(attribute_type)
        logger.info("Updated attribute type", attribute_type_id=type_id)
        return attribute_type

    def set_type_active(self, type_id: int, active: bool) -> AttributeType:
        with transaction(self.db):
            attribute_type = self.get_type(type_id)
            attribute_type.is_active = active
            attribute_type = self.repo.save(attribute_type)
        logger.info("Changed attribute type status", attribute_type_id=type_id, is_active=active)
        return attribute_type

    @staticmethod
    def _compile(pattern: str):
        try:
            return re.compile(pattern)
        except re.error as e:
            raise ValidationError(f"Invalid validation pattern: {e}") from e

    # === Shift Attribute Values ===

    def assign_attribute(
        self, shift_id: int, data: AssignAttributeRequest, created_by: Optional[str] = None
    ) -> ShiftAttributeValue:
        """
        Give a shift a dynamic attribute for a date window.

        Raises:
            NotFoundError: Unknown shift or attribute type
            ValidationError: Inactive type, missing or malformed value, bad range
            ConflictError: The shift already holds this attribute in the window
        """
        logger.info(
            "Assigning attribute to shift",
            shift_id=shift_id, attribute_type_id=data.attribute_type_id,
            start_date=data.start_date.isoformat(),
        )
        value = data.attribute_value.strip() if data.attribute_value else None

        with transaction(self.db):
            if not self.fleet.get_shift(shift_id):
                raise NotFoundError("Shift", shift_id)
            attribute_type = self.get_type(data.attribute_type_id)
            if not attribute_type.is_active:
                raise ValidationError(f"Attribute type {attribute_type.attribute_code} is inactive")
            if attribute_type.requires_value and not value:
                raise ValidationError(f"Attribute {attribute_type.attribute_code} requires a value")
            if value and attribute_type.validation_pattern:
                if not self._compile(attribute_type.validation_pattern).fullmatch(value):
                    raise ValidationError(
                        f"Value does not match the format for {attribute_type.attribute_code}",
                        {"pattern": attribute_type.validation_pattern},
                    )
            validate_range(data.start_date, data.end_date)
            ensure_no_overlap(
                self.repo.list_for_shift_and_type(shift_id, attribute_type.id),
                data.start_date, data.end_date, describe=_describe_value,
            )
            record = self.repo.add(ShiftAttributeValue(
                shift_id=shift_id,
                attribute_type_id=attribute_type.id,
                attribute_value=value,
                start_date=data.start_date,
                end_date=data.end_date,
                notes=data.notes,
                created_by=created_by,
            ))
        logger.info("Assigned attribute to shift", value_id=record.id, shift_id=shift_id)
        return record

    def end_attribute(
        self, value_id: int, end_date: date, updated_by: Optional[str] = None
    ) -> ShiftAttributeValue:
        with transaction(self.db):
            record = self.repo.get_value(value_id)
            if not record:
                raise NotFoundError("ShiftAttributeValue", value_id)
            validate_range(record.start_date, end_date)
            ensure_no_overlap(
                self.repo.list_for_shift_and_type(record.shift_id, record.attribute_type_id),
                record.start_date, end_date, exclude_id=record.id, describe=_describe_value,
            )
            record.end_date = end_date
            record.modified_by = updated_by
            record = self.repo.save(record)
        logger.info("Ended shift attribute", value_id=value_id, end_date=end_date.isoformat())
        return record

    def list_shift_attributes(self, shift_id: int) -> List[ShiftAttributeValue]:
        return self.repo.list_for_shift(shift_id)

    def list_current_attributes(self, shift_id: int, on_date: date) -> List[ShiftAttributeValue]:
        return self.repo.list_current_for_shift(shift_id, on_date)

    def find_current_attribute_values(self, shift_id: int, on_date: date) -> List[Tuple[int, str]]:
        return self.repo.find_current_attribute_values(shift_id, on_date)
