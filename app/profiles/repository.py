# app/profiles/repository.py

"""
Data Access Layer for shift profiles and profile assignments.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import and_, case, desc, func, or_, select, update
from sqlalchemy.orm import Session

from app.profiles.models import ShiftProfile, ShiftProfileAssignment, ShiftProfileAttribute
from app.profiles.schemas import ShiftProfileRecord


def _filter_admits(column, value):
    """Profile column is NULL (any value) or equals the shift's value."""
    if value is None:
        return column.is_(None)
    return or_(column.is_(None), column == value)


class ShiftProfileRepository:
    """
    Repository for ShiftProfile and ShiftProfileAttribute.
    Implements the profile lookup used by the matcher.
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

    def delete(self, record) -> None:
        self.db.delete(record)
        self.db.flush()

    def get_by_id(self, profile_id: int, for_update: bool = False) -> Optional[ShiftProfile]:
        stmt = select(ShiftProfile).where(ShiftProfile.id == profile_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def adjust_usage(self, profile_id: int, delta: int) -> None:
        """Shift usage_count by delta in a single UPDATE, floored at zero."""
        adjusted = ShiftProfile.usage_count + delta
        stmt = (
            update(ShiftProfile)
            .where(ShiftProfile.id == profile_id)
            .values(usage_count=case((adjusted < 0, 0), else_=adjusted))
            .execution_options(synchronize_session="fetch")
        )
        self.db.execute(stmt)

    def get_by_code(self, code: str) -> Optional[ShiftProfile]:
        stmt = select(ShiftProfile).where(ShiftProfile.profile_code == code)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self, active_only: bool = False) -> List[ShiftProfile]:
        stmt = select(ShiftProfile)
        if active_only:
            stmt = stmt.where(ShiftProfile.is_active.is_(True))
        stmt = stmt.order_by(ShiftProfile.display_order, ShiftProfile.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_requirement(self, requirement_id: int) -> Optional[ShiftProfileAttribute]:
        return self.db.get(ShiftProfileAttribute, requirement_id)

    def find_profile_by_id(self, profile_id: int) -> Optional[ShiftProfileRecord]:
        profile = self.get_by_id(profile_id)
        return profile.to_record() if profile else None

    def find_active_profiles_matching_static(
        self, cab_type: Optional[str], share_type: Optional[str],
        has_airport_license: Optional[bool], shift_type: Optional[str],
    ) -> List[ShiftProfileRecord]:
        stmt = (
            select(ShiftProfile)
            .where(
                ShiftProfile.is_active.is_(True),
                _filter_admits(ShiftProfile.cab_type, cab_type),
                _filter_admits(ShiftProfile.share_type, share_type),
                _filter_admits(ShiftProfile.has_airport_license, has_airport_license),
                _filter_admits(ShiftProfile.shift_type, shift_type),
            )
            .order_by(ShiftProfile.display_order, ShiftProfile.id)
        )
        return [p.to_record() for p in self.db.execute(stmt).scalars().all()]


class ShiftProfileAssignmentRepository:
    """
    Repository for the ShiftProfileAssignment audit log.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, assignment: ShiftProfileAssignment) -> ShiftProfileAssignment:
        self.db.add(assignment)
        self.db.flush()
        self.db.refresh(assignment)
        return assignment

    def find_open(self, shift_id: int) -> Optional[ShiftProfileAssignment]:
        """The shift's assignment with no end date, if any."""
        stmt = (
            select(ShiftProfileAssignment)
            .where(
                ShiftProfileAssignment.shift_id == shift_id,
                ShiftProfileAssignment.end_date.is_(None),
            )
            .order_by(desc(ShiftProfileAssignment.start_date), desc(ShiftProfileAssignment.id))
        )
        return self.db.execute(stmt).scalars().first()

    def history(self, shift_id: int) -> List[ShiftProfileAssignment]:
        stmt = (
            select(ShiftProfileAssignment)
            .where(ShiftProfileAssignment.shift_id == shift_id)
            .order_by(desc(ShiftProfileAssignment.start_date), desc(ShiftProfileAssignment.id))
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_for_profile(self, profile_id: int) -> int:
        stmt = select(func.count(ShiftProfileAssignment.id)).where(
            ShiftProfileAssignment.profile_id == profile_id
        )
        return self.db.execute(stmt).scalar_one()

    def find_on(self, shift_id: int, on_date: date) -> Optional[ShiftProfileAssignment]:
        stmt = (
            select(ShiftProfileAssignment)
            .where(
                ShiftProfileAssignment.shift_id == shift_id,
                and_(
                    ShiftProfileAssignment.start_date <= on_date,
                    or_(
                        ShiftProfileAssignment.end_date.is_(None),
                        ShiftProfileAssignment.end_date >= on_date,
                    ),
                ),
            )
            .order_by(desc(ShiftProfileAssignment.start_date), desc(ShiftProfileAssignment.id))
        )
        return self.db.execute(stmt).scalars().first()
