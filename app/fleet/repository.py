# app/fleet/repository.py

"""
Data Access Layer for drivers, cabs and shifts.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.fleet.models import Cab, CabShift, Driver
from app.fleet.schemas import ShiftContext


class FleetRepository:
    """
    Repository for Driver, Cab and CabShift data access.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, record):
        self.db.add(record)
        self.db.flush()
        self.db.refresh(record)
        return record

    def get_driver_by_number(self, driver_number: str, for_update: bool = False) -> Optional[Driver]:
        """Get driver by driver number, optionally locking the row."""
        stmt = select(Driver).where(Driver.driver_number == driver_number)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cab_by_number(self, cab_number: str) -> Optional[Cab]:
        stmt = select(Cab).where(Cab.cab_number == cab_number)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_shift(self, shift_id: int, for_update: bool = False) -> Optional[CabShift]:
        """
        Get shift by ID with its cab loaded.

        for_update locks the shift row so concurrent assignment writers for the
        same shift queue behind each other.
        """
        stmt = select(CabShift).where(CabShift.id == shift_id)
        if for_update:
            stmt = stmt.with_for_update(of=CabShift)
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def find_shift_context(self, shift_id: int) -> Optional[ShiftContext]:
        shift = self.get_shift(shift_id)
        return shift.to_context() if shift else None
