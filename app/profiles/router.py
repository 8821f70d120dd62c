# app/profiles/router.py

"""
FastAPI router for shift profiles and profile assignments.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.exceptions import FleetBaseException, convert_to_http_exception
from app.fleet.schemas import CabShiftResponse, CabType, ShareType, ShiftType
from app.profiles.schemas import (
    AssignProfileRequest, EndAssignmentRequest, MatchResult,
    ProfileRequirementCreate, ShiftProfileAssignmentResponse, ShiftProfileCreate,
    ShiftProfileRecord, ShiftProfileResponse, ShiftProfileUpdate,
)
from app.profiles.services import ShiftProfileService
from app.utils.logger import get_logger

logger = get_logger(__name__)

profile_router = APIRouter(tags=["Shift Profiles"], prefix="/shift-profiles")
shift_profile_router = APIRouter(tags=["Shift Profile Assignments"], prefix="/shifts")


# ===================== Profile definitions =====================

@profile_router.post("", response_model=ShiftProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
    data: ShiftProfileCreate,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.create_profile(data, created_by=actor)
    except FleetBaseException as e:
        logger.error(f"Failed to create shift profile: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@profile_router.get("", response_model=List[ShiftProfileResponse])
def list_profiles(
    active_only: bool = Query(False),
    service: ShiftProfileService = Depends(),
):
    return service.list_profiles(active_only=active_only)


@profile_router.get("/matching", response_model=List[ShiftProfileRecord])
def find_matching_profiles(
    cab_type: Optional[CabType] = Query(None),
    share_type: Optional[ShareType] = Query(None),
    has_airport_license: Optional[bool] = Query(None),
    shift_type: Optional[ShiftType] = Query(None),
    service: ShiftProfileService = Depends(),
):
    """Active profiles whose static filters admit the given values."""
    return service.find_matching_profiles(cab_type, share_type, has_airport_license, shift_type)


@profile_router.get("/{profile_id}", response_model=ShiftProfileResponse)
def get_profile(profile_id: int, service: ShiftProfileService = Depends()):
    try:
        return service.get_profile(profile_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@profile_router.patch("/{profile_id}", response_model=ShiftProfileResponse)
def update_profile(
    profile_id: int,
    data: ShiftProfileUpdate,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.update_profile(profile_id, data, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@profile_router.post("/{profile_id}/activate", response_model=ShiftProfileResponse)
def activate_profile(
    profile_id: int,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.activate_profile(profile_id, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@profile_router.post("/{profile_id}/deactivate", response_model=ShiftProfileResponse)
def deactivate_profile(
    profile_id: int,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.deactivate_profile(profile_id, updated_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@profile_router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(profile_id: int, service: ShiftProfileService = Depends()):
    try:
        service.delete_profile(profile_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@profile_router.post(
    "/{profile_id}/requirements",
    response_model=ShiftProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_requirement(
    profile_id: int,
    data: ProfileRequirementCreate,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.add_requirement(profile_id, data, created_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@profile_router.delete("/{profile_id}/requirements/{requirement_id}", response_model=ShiftProfileResponse)
def remove_requirement(
    profile_id: int,
    requirement_id: int,
    service: ShiftProfileService = Depends(),
):
    try:
        return service.remove_requirement(profile_id, requirement_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


# ===================== Shift assignments =====================

@shift_profile_router.post(
    "/{shift_id}/profile",
    response_model=ShiftProfileAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_profile(
    shift_id: int,
    data: AssignProfileRequest,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    """
    Assign a profile to a shift. The current assignment, if any, ends the
    day before the new start date.
    """
    try:
        return service.assign_profile_to_shift(
            shift_id, data.profile_id, data.start_date, reason=data.reason, assigned_by=actor
        )
    except FleetBaseException as e:
        logger.error(f"Failed to assign profile: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@shift_profile_router.post("/{shift_id}/profile/end", response_model=ShiftProfileAssignmentResponse)
def end_profile_assignment(
    shift_id: int,
    data: EndAssignmentRequest,
    actor: Optional[str] = Query(None),
    service: ShiftProfileService = Depends(),
):
    try:
        return service.end_profile_assignment(shift_id, data.end_date, ended_by=actor)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@shift_profile_router.get("/{shift_id}/profile", response_model=Optional[ShiftProfileAssignmentResponse])
def get_current_assignment(shift_id: int, service: ShiftProfileService = Depends()):
    return service.get_current_assignment(shift_id)


@shift_profile_router.get("/{shift_id}/profile/history", response_model=List[ShiftProfileAssignmentResponse])
def get_assignment_history(shift_id: int, service: ShiftProfileService = Depends()):
    return service.get_assignment_history(shift_id)


@shift_profile_router.get("/{shift_id}/profile/on", response_model=Optional[ShiftProfileResponse])
def get_profile_on(
    shift_id: int,
    on_date: date = Query(...),
    service: ShiftProfileService = Depends(),
):
    return service.get_profile_on(shift_id, on_date)


@shift_profile_router.get("/{shift_id}/profile/suggestions", response_model=List[ShiftProfileRecord])
def suggest_profiles(shift_id: int, service: ShiftProfileService = Depends()):
    try:
        return service.suggest_profiles(shift_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@shift_profile_router.get("/{shift_id}/profile/check/{profile_id}", response_model=MatchResult)
def check_profile_match(
    shift_id: int,
    profile_id: int,
    on_date: Optional[date] = Query(None, description="Defaults to today"),
    service: ShiftProfileService = Depends(),
):
    """Static and dynamic check of one profile against the shift."""
    try:
        return service.check_match(shift_id, profile_id, on_date or date.today())
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e


@shift_profile_router.post("/{shift_id}/profile/reconcile", response_model=CabShiftResponse)
def reconcile_current_profile(shift_id: int, service: ShiftProfileService = Depends()):
    try:
        return service.reconcile_current_profile(shift_id)
    except FleetBaseException as e:
        raise convert_to_http_exception(e) from e
