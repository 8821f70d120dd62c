# app/attributes/router.py

"""
FastAPI router for attribute types and shift attribute values.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.attributes.schemas import (
    AssignAttributeRequest, AttributeTypeCreate, AttributeTypeResponse,
    AttributeTypeUpdate, EndAttributeRequest, ShiftAttributeValueResponse,
)
from app.attributes.services import AttributeService
from app.core.exceptions import FleetBaseException, convert_to_http_exception
from app.utils.logger import get_logger

logger = get_logger(__name__)

type_router = APIRouter(tags=["Attribute Types"], prefix="/attribute-types")
shift_attribute_router = APIRouter(tags=["Shift Attributes"], prefix="/shifts")


@type_router.post("", response_model=AttributeTypeResponse, status_code=status.HTTP_201_CREATED)
def create_attribute_type(
    data: AttributeTypeCreate,
    actor: Optional[str] = Query(None),
    service: AttributeService = Depends(),
):
    try:
        return service.create_type(data, created_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@type_router.get("", response_model=List[AttributeTypeResponse])
def list_attribute_types(
    active_only: bool = Query(False),
    service: AttributeService = Depends(),
):
    return service.list_types(active_only=active_only)


@type_router.get("/{type_id}", response_model=AttributeTypeResponse)
def get_attribute_type(type_id: int, service: AttributeService = Depends()):
    try:
        return service.get_type(type_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@type_router.patch("/{type_id}", response_model=AttributeTypeResponse)
def update_attribute_type(
    type_id: int,
    data: AttributeTypeUpdate,
    actor: Optional[str] = Query(None),
    service: AttributeService = Depends(),
):
    try:
        return service.update_type(type_id, data, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@type_router.post("/{type_id}/activate", response_model=AttributeTypeResponse)
def activate_attribute_type(type_id: int, service: AttributeService = Depends()):
    try:
        return service.set_type_active(type_id, True)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@type_router.post("/{type_id}/deactivate", response_model=AttributeTypeResponse)
def deactivate_attribute_type(type_id: int, service: AttributeService = Depends()):
    try:
        return service.set_type_active(type_id, False)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


# ===================== Shift Attributes =====================

@shift_attribute_router.post(
    "/{shift_id}/attributes",
    response_model=ShiftAttributeValueResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_attribute(
    shift_id: int,
    data: AssignAttributeRequest,
    actor: Optional[str] = Query(None),
    service: AttributeService = Depends(),
):
    try:
        return service.assign_attribute(shift_id, data, created_by=actor)
    except FleetBaseException as e:
        logger.error(f"Failed to assign attribute: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@shift_attribute_router.get("/{shift_id}/attributes", response_model=List[ShiftAttributeValueResponse])
def list_shift_attributes(
    shift_id: int,
    on_date: Optional[date] = Query(None, description="Only values current on this date"),
    service: AttributeService = Depends(),
):
    if on_date:
        return service.list_current_attributes(shift_id, on_date)
    return service.list_shift_attributes(shift_id)


@shift_attribute_router.post(
    "/attributes/{value_id}/end", response_model=ShiftAttributeValueResponse
)
def end_attribute(
    value_id: int,
    data: EndAttributeRequest,
    actor: Optional[str] = Query(None),
    service: AttributeService = Depends(),
):
    try:
        return service.end_attribute(value_id, data.end_date, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
