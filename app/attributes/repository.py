# app/attributes/repository.py

"""
Data Access Layer for attribute types and shift attribute values.
"""

from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.attributes.models import AttributeType, ShiftAttributeValue


class AttributeRepository:
    """
    Repository for AttributeType and ShiftAttributeValue.
    Implements the attribute lookup used by the profile matcher.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, record):
        self.db.add(record)
        self.db.flush()
        self.db.refresh(record)
        return record

    def save(self, record):
        self.db.flush()
        self.db.refresh(record)
        return record

    # --- Attribute types ---

    def get_type(self, type_id: int) -> Optional[AttributeType]:
        return self.db.get(AttributeType, type_id)

    def get_type_by_code(self, code: str) -> Optional[AttributeType]:
        stmt = select(AttributeType).where(AttributeType.attribute_code == code)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_types(self, active_only: bool = False) -> List[AttributeType]:
        stmt = select(AttributeType)
        if active_only:
            stmt = stmt.where(AttributeType.is_active.is_(True))
        stmt = stmt.order_by(AttributeType.category, AttributeType.attribute_name)
        return list(self.db.execute(stmt).scalars().all())

    # --- Shift values ---

    def get_value(self, value_id: int) -> Optional[ShiftAttributeValue]:
        return self.db.get(ShiftAttributeValue, value_id)

    def list_for_shift_and_type(self, shift_id: int, attribute_type_id: int) -> List[ShiftAttributeValue]:
        stmt = select(ShiftAttributeValue).where(
            ShiftAttributeValue.shift_id == shift_id,
            ShiftAttributeValue.attribute_type_id == attribute_type_id,
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def list_for_shift(self, shift_id: int) -> List[ShiftAttributeValue]:
        stmt = (
            select(ShiftAttributeValue)
            .where(ShiftAttributeValue.shift_id == shift_id)
            .order_by(ShiftAttributeValue.start_date.desc())
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def list_current_for_shift(self, shift_id: int, on_date: date) -> List[ShiftAttributeValue]:
        stmt = select(ShiftAttributeValue).where(
            ShiftAttributeValue.shift_id == shift_id,
            and_(
                ShiftAttributeValue.start_date <= on_date,
                or_(ShiftAttributeValue.end_date.is_(None), ShiftAttributeValue.end_date >= on_date),
            ),
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def find_current_attribute_values(self, shift_id: int, on_date: date) -> List[Tuple[int, str]]:
        """
        (attribute_type_id, value) for every attribute the shift holds on on_date.
        An attribute held without a value is reported as "".
        """
        return [
            (v.attribute_type_id, v.attribute_value or "")
            for v in self.list_current_for_shift(shift_id, on_date)
        ]
