# app/fleet/router.py

"""
FastAPI router for the minimal driver, cab and shift records.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.exceptions import FleetBaseException, convert_to_http_exception
from app.fleet.schemas import (
    CabCreate, CabResponse, CabShiftCreate, CabShiftResponse,
    DriverCreate, DriverResponse, ShiftContext,
)
from app.fleet.services import FleetService
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Fleet"], prefix="/fleet")


@router.post("/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
def create_driver(
    data: DriverCreate,
    actor: Optional[str] = Query(None),
    service: FleetService = Depends(),
):
    try:
        return service.create_driver(data, created_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@router.post("/cabs", response_model=CabResponse, status_code=status.HTTP_201_CREATED)
def create_cab(
    data: CabCreate,
    actor: Optional[str] = Query(None),
    service: FleetService = Depends(),
):
    try:
        return service.create_cab(data, created_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@router.post("/shifts", response_model=CabShiftResponse, status_code=status.HTTP_201_CREATED)
def create_shift(
    data: CabShiftCreate,
    actor: Optional[str] = Query(None),
    service: FleetService = Depends(),
):
    try:
        return service.create_shift(data, created_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@router.get("/shifts/{shift_id}", response_model=ShiftContext)
def get_shift(shift_id: int, service: FleetService = Depends()):
    """Shift with the static attributes it inherits from its cab."""
    try:
        return service.get_shift(shift_id).to_context()
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
