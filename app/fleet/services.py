# app/fleet/services.py

"""
Minimal driver/cab/shift bookkeeping used by the rate and profile engines.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.db import get_db, transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.fleet.models import Cab, CabShift, Driver
from app.fleet.repository import FleetRepository
from app.fleet.schemas import CabCreate, CabShiftCreate, DriverCreate
from app.utils.logger import get_logger

logger = get_logger(__name__)


class FleetService:
    """Service for the fleet records the engines reference"""

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.repo = FleetRepository(db)

    def create_driver(self, data: DriverCreate, created_by: str = None) -> Driver:
        with transaction(self.db):
            if self.repo.get_driver_by_number(data.driver_number):
                raise ValidationError(f"Driver number already exists: {data.driver_number}")
            driver = self.repo.add(Driver(**data.model_dump(), created_by=created_by))
        logger.info("Created driver", driver_number=driver.driver_number, is_owner=driver.is_owner)
        return driver

    def create_cab(self, data: CabCreate, created_by: str = None) -> Cab:
        with transaction(self.db):
            if self.repo.get_cab_by_number(data.cab_number):
                raise ValidationError(f"Cab number already exists: {data.cab_number}")
            if data.owner_driver_number and not self.repo.get_driver_by_number(data.owner_driver_number):
                raise NotFoundError("Driver", data.owner_driver_number)
            cab = self.repo.add(Cab(
                cab_number=data.cab_number,
                cab_type=data.cab_type.value,
                share_type=data.share_type.value if data.share_type else None,
                has_airport_license=data.has_airport_license,
                owner_driver_number=data.owner_driver_number,
                created_by=created_by,
            ))
        logger.info("Created cab", cab_number=cab.cab_number, cab_type=cab.cab_type)
        return cab

    def create_shift(self, data: CabShiftCreate, created_by: str = None) -> CabShift:
        with transaction(self.db):
            cab = self.repo.get_cab_by_number(data.cab_number)
            if not cab:
                raise NotFoundError("Cab", data.cab_number)
            if any(s.shift_type == data.shift_type.value for s in cab.shifts):
                raise ValidationError(
                    f"Cab {data.cab_number} already has a {data.shift_type.value} shift"
                )
            shift = self.repo.add(CabShift(
                cab_id=cab.id, shift_type=data.shift_type.value, created_by=created_by
            ))
        logger.info("Created shift", shift_id=shift.id, cab_number=cab.cab_number)
        return shift

    def get_shift(self, shift_id: int) -> CabShift:
        shift = self.repo.get_shift(shift_id)
        if not shift:
            raise NotFoundError("Shift", shift_id)
        return shift
