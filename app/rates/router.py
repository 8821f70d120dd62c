# app/rates/router.py

"""
FastAPI router for lease rate overrides, lease plans and lease lookups.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.exceptions import FleetBaseException, convert_to_http_exception
from app.rates.schemas import (
    BulkOverrideCreate, BulkOverrideResult, DeactivatePlanRequest,
    EndOverrideRequest, LeasePlanCreate, LeasePlanResponse, LeasePlanUpdate,
    LeaseRateEntryCreate, LeaseRateOverrideCreate, LeaseRateOverrideResponse,
    LeaseRateOverrideUpdate, LeaseRateQuote,
)
from app.rates.services import LeasePlanService, LeaseRateOverrideService, LeaseRateService
from app.utils.logger import get_logger

logger = get_logger(__name__)

override_router = APIRouter(tags=["Lease Rate Overrides"], prefix="/lease-overrides")
plan_router = APIRouter(tags=["Lease Plans"], prefix="/lease-plans")
rate_router = APIRouter(tags=["Lease Rates"], prefix="/lease-rates")


# ===================== Overrides =====================

@override_router.post("", response_model=LeaseRateOverrideResponse, status_code=status.HTTP_201_CREATED)
def create_override(
    data: LeaseRateOverrideCreate,
    actor: Optional[str] = Query(None, description="Who is making the change"),
    service: LeaseRateOverrideService = Depends(),
):
    """
    Create a custom lease rate for an owner.

    Priority is calculated from the cab / shift type / day filters. A start
    date within the auto-close window ends the owner's open override for the
    same cab the day before.
    """
    try:
        return service.create_override(data, created_by=actor)
    except FleetBaseException as e:
        logger.error(f"Failed to create lease override: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@override_router.post("/bulk", response_model=BulkOverrideResult, status_code=status.HTTP_201_CREATED)
def create_bulk_overrides(
    data: BulkOverrideCreate,
    actor: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    """One override per day of week; failed days are listed, not fatal."""
    return service.create_bulk_overrides(data, created_by=actor)


@override_router.get("", response_model=List[LeaseRateOverrideResponse])
def list_overrides(
    owner_driver_number: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    if owner_driver_number:
        return service.list_owner_overrides(owner_driver_number)
    return service.list_all_overrides()


@override_router.get("/active", response_model=List[LeaseRateOverrideResponse])
def list_active_overrides(
    on_date: Optional[date] = Query(None, description="Defaults to today"),
    service: LeaseRateOverrideService = Depends(),
):
    return service.list_active_overrides(on_date)


@override_router.get("/expiring", response_model=List[LeaseRateOverrideResponse])
def list_expiring_overrides(
    days: int = Query(30, ge=0, le=365),
    service: LeaseRateOverrideService = Depends(),
):
    """Active overrides whose end date falls within the next `days` days."""
    return service.list_expiring_soon(days)


@override_router.get("/{override_id}", response_model=LeaseRateOverrideResponse)
def get_override(override_id: int, service: LeaseRateOverrideService = Depends()):
    try:
        return service.get_override(override_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@override_router.patch("/{override_id}", response_model=LeaseRateOverrideResponse)
def update_override(
    override_id: int,
    data: LeaseRateOverrideUpdate,
    actor: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    try:
        return service.update_override(override_id, data, updated_by=actor)
    except FleetBaseException as e:
        logger.error(f"Failed to update lease override: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@override_router.post("/{override_id}/end", response_model=LeaseRateOverrideResponse)
def end_override(
    override_id: int,
    data: EndOverrideRequest,
    actor: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    try:
        return service.end_override(override_id, data.end_date, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@override_router.post("/{override_id}/deactivate", response_model=LeaseRateOverrideResponse)
def deactivate_override(
    override_id: int,
    actor: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    try:
        return service.deactivate_override(override_id, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@override_router.post("/{override_id}/activate", response_model=LeaseRateOverrideResponse)
def activate_override(
    override_id: int,
    actor: Optional[str] = Query(None),
    service: LeaseRateOverrideService = Depends(),
):
    try:
        return service.activate_override(override_id, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@override_router.delete("/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_override(override_id: int, service: LeaseRateOverrideService = Depends()):
    try:
        service.delete_override(override_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===================== Lease Plans =====================

@plan_router.post("", response_model=LeasePlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    data: LeasePlanCreate,
    actor: Optional[str] = Query(None),
    service: LeasePlanService = Depends(),
):
    try:
        return service.create_plan(data, created_by=actor)
    except FleetBaseException as e:
        logger.error(f"Failed to create lease plan: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@plan_router.get("", response_model=List[LeasePlanResponse])
def list_plans(service: LeasePlanService = Depends()):
    return service.list_plans()


@plan_router.get("/active", response_model=Optional[LeasePlanResponse])
def get_active_plan(
    on_date: Optional[date] = Query(None, description="Defaults to today"),
    service: LeasePlanService = Depends(),
):
    return service.get_plan_active_on(on_date or date.today())


@plan_router.get("/{plan_id}", response_model=LeasePlanResponse)
def get_plan(plan_id: int, service: LeasePlanService = Depends()):
    try:
        return service.get_plan(plan_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.patch("/{plan_id}", response_model=LeasePlanResponse)
def update_plan(
    plan_id: int,
    data: LeasePlanUpdate,
    actor: Optional[str] = Query(None),
    service: LeasePlanService = Depends(),
):
    try:
        return service.update_plan(plan_id, data, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.post("/{plan_id}/deactivate", response_model=LeasePlanResponse)
def deactivate_plan(
    plan_id: int,
    data: DeactivatePlanRequest,
    actor: Optional[str] = Query(None),
    service: LeasePlanService = Depends(),
):
    try:
        return service.deactivate_plan(plan_id, data.end_date, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.post("/{plan_id}/entries", response_model=LeasePlanResponse)
def add_entries(
    plan_id: int,
    entries: List[LeaseRateEntryCreate],
    service: LeasePlanService = Depends(),
):
    try:
        return service.add_entries(plan_id, entries)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.delete("/{plan_id}")
def delete_plan(plan_id: int, service: LeasePlanService = Depends()):
    try:
        service.delete_plan(plan_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.put("/entries/{entry_id}")
def update_entry(entry_id: int, service: LeasePlanService = Depends()):
    try:
        service.update_entry(entry_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@plan_router.delete("/entries/{entry_id}")
def delete_entry(entry_id: int, service: LeasePlanService = Depends()):
    try:
        service.delete_entry(entry_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


# ===================== Lookups =====================

@rate_router.get("/applicable")
def get_applicable_lease_rate(
    owner_driver_number: str = Query(...),
    cab_number: str = Query(...),
    shift_type: str = Query(...),
    on_date: date = Query(...),
    service: LeaseRateService = Depends(),
):
    """Custom rate for the tuple, or null when the default plan applies."""
    rate = service.get_applicable_lease_rate(owner_driver_number, cab_number, shift_type, on_date)
    return {"lease_rate": rate, "has_override": rate is not None}


@rate_router.get("/shifts/{shift_id}", response_model=LeaseRateQuote)
def quote_shift_lease(
    shift_id: int,
    on_date: date = Query(...),
    miles_driven: Optional[Decimal] = Query(None, ge=0),
    service: LeaseRateService = Depends(),
):
    try:
        return service.quote_for_shift(shift_id, on_date, miles_driven)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
