# app/profiles/services.py

"""
Business Logic Layer for shift profiles.

Assignment writes lock the shift row first, so for any shift at most one
assignment stays open and the usage counters and current-profile pointer
move together with the audit log.
"""

from datetime import date
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.attributes.repository import AttributeRepository
from app.core.db import get_db, transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.fleet.models import CabShift
from app.fleet.repository import FleetRepository
from app.profiles.matcher import ProfileMatcher, failed_static_fields
from app.profiles.models import ShiftProfile, ShiftProfileAssignment, ShiftProfileAttribute
from app.profiles.repository import ShiftProfileAssignmentRepository, ShiftProfileRepository
from app.profiles.schemas import (
    MatchResult, ProfileRequirementCreate, ShiftProfileCreate, ShiftProfileRecord,
    ShiftProfileUpdate,
)
from app.utils.logger import get_logger
from app.utils.temporal import day_before, validate_range

logger = get_logger(__name__)

STATIC_FILTERS = ("cab_type", "share_type", "has_airport_license", "shift_type")


def _plain(value):
    return value.value if hasattr(value, "value") else value


class ShiftProfileService:
    """
    Service for profile definitions, their requirements and profile
    assignments to shifts.
    """

    def __init__(self, db: Session = Depends(get_db)):
        self.db = db
        self.repo = ShiftProfileRepository(db)
        self.assignments = ShiftProfileAssignmentRepository(db)
        self.attributes = AttributeRepository(db)
        self.fleet = FleetRepository(db)
        self.matcher = ProfileMatcher(self.repo, self.attributes, self.fleet)

    # === Helpers ===

    def _get_or_raise(self, profile_id: int, for_update: bool = False) -> ShiftProfile:
        profile = self.repo.get_by_id(profile_id, for_update=for_update)
        if not profile:
            raise NotFoundError("ShiftProfile", profile_id)
        return profile

    def _get_shift_for_update(self, shift_id: int) -> CabShift:
        shift = self.fleet.get_shift(shift_id, for_update=True)
        if not shift:
            raise NotFoundError("Shift", shift_id)
        return shift

    def _build_requirements(self, items: List[ProfileRequirementCreate]) -> List[ShiftProfileAttribute]:
        seen = set()
        built = []
        for item in items:
            if item.attribute_type_id in seen:
                raise ValidationError(
                    f"Attribute type {item.attribute_type_id} is listed more than once",
                    {"attribute_type_id": item.attribute_type_id},
                )
            if not self.attributes.get_type(item.attribute_type_id):
                raise NotFoundError("AttributeType", item.attribute_type_id)
            seen.add(item.attribute_type_id)
            built.append(ShiftProfileAttribute(
                attribute_type_id=item.attribute_type_id,
                is_required=item.is_required,
                expected_value=item.expected_value,
            ))
        return built

    # === Profile definitions ===

    def create_profile(self, data: ShiftProfileCreate, created_by: Optional[str] = None) -> ShiftProfile:
        """
        Create a profile with optional dynamic requirements.

        Raises:
            ValidationError: Code already used, duplicate requirement
            NotFoundError: Unknown attribute type in a requirement
        """
        code = data.profile_code.strip().upper()
        logger.info("Creating shift profile", profile_code=code)
        with transaction(self.db):
            if self.repo.get_by_code(code):
                raise ValidationError(f"Profile code {code} already exists")
            profile = ShiftProfile(
                profile_code=code,
                profile_name=data.profile_name,
                description=data.description,
                cab_type=_plain(data.cab_type),
                share_type=_plain(data.share_type),
                has_airport_license=data.has_airport_license,
                shift_type=_plain(data.shift_type),
                category=data.category,
                color_code=data.color_code,
                display_order=data.display_order,
                is_active=True,
                is_system_profile=data.is_system_profile,
                usage_count=0,
                created_by=created_by,
                modified_by=created_by,
            )
            profile.requirements = self._build_requirements(data.requirements)
            profile = self.repo.add(profile)
        logger.info("Created shift profile", profile_id=profile.id, requirements=len(profile.requirements))
        return profile

    def update_profile(
        self, profile_id: int, data: ShiftProfileUpdate, updated_by: Optional[str] = None
    ) -> ShiftProfile:
        """
        Partially update a profile. System profiles are editable. A supplied
        requirement list replaces the stored one.
        """
        changes = data.model_dump(exclude_unset=True)
        requirements = changes.pop("requirements", None)
        with transaction(self.db):
            profile = self._get_or_raise(profile_id)
            for field, value in changes.items():
                if field in ("profile_name", "display_order") and value is None:
                    continue
                setattr(profile, field, _plain(value))
            if requirements is not None:
                new_requirements = self._build_requirements(data.requirements)
                profile.requirements.clear()
                # Old rows must be gone before the (profile, type) pairs are reinserted
                self.db.flush()
                profile.requirements.extend(new_requirements)
            profile.modified_by = updated_by
            profile = self.repo.save(profile)
        logger.info("Updated shift profile", profile_id=profile_id, fields=sorted(changes))
        return profile

    def activate_profile(self, profile_id: int, updated_by: Optional[str] = None) -> ShiftProfile:
        return self._set_active(profile_id, True, updated_by)

    def deactivate_profile(self, profile_id: int, updated_by: Optional[str] = None) -> ShiftProfile:
        return self._set_active(profile_id, False, updated_by)

    def _set_active(self, profile_id: int, active: bool, updated_by: Optional[str]) -> ShiftProfile:
        with transaction(self.db):
            profile = self._get_or_raise(profile_id)
            profile.is_active = active
            profile.modified_by = updated_by
            profile = self.repo.save(profile)
        logger.info("Changed shift profile status", profile_id=profile_id, is_active=active)
        return profile

    def delete_profile(self, profile_id: int) -> None:
        """
        Raises:
            ValidationError: System profile, profile in use, or profile with
                assignment history
        """
        with transaction(self.db):
            profile = self._get_or_raise(profile_id, for_update=True)
            if profile.is_system_profile:
                raise ValidationError(
                    f"Cannot delete system profile {profile.profile_code}",
                    {"reason": "system_profile"},
                )
            if profile.usage_count > 0:
                raise ValidationError(
                    f"Cannot delete profile {profile.profile_code}: "
                    f"it is assigned to {profile.usage_count} shift(s)",
                    {"reason": "in_use", "usage_count": profile.usage_count},
                )
            if self.assignments.count_for_profile(profile_id):
                raise ValidationError(
                    f"Cannot delete profile {profile.profile_code}: "
                    "it has assignment history. Deactivate it instead.",
                    {"reason": "has_history"},
                )
            self.repo.delete(profile)
        logger.info("Deleted shift profile", profile_id=profile_id)

    def get_profile(self, profile_id: int) -> ShiftProfile:
        return self._get_or_raise(profile_id)

    def list_profiles(self, active_only: bool = False) -> List[ShiftProfile]:
        return self.repo.list_all(active_only=active_only)

    # === Requirements ===

    def add_requirement(
        self, profile_id: int, data: ProfileRequirementCreate, created_by: Optional[str] = None
    ) -> ShiftProfile:
        """
        Raises:
            NotFoundError: Unknown profile or attribute type
            ValidationError: The profile already has a rule for this attribute type
        """
        with transaction(self.db):
            profile = self._get_or_raise(profile_id)
            if not self.attributes.get_type(data.attribute_type_id):
                raise NotFoundError("AttributeType", data.attribute_type_id)
            if any(r.attribute_type_id == data.attribute_type_id for r in profile.requirements):
                raise ValidationError(
                    f"Profile {profile.profile_code} already has a requirement "
                    f"for attribute type {data.attribute_type_id}"
                )
            profile.requirements.append(ShiftProfileAttribute(
                attribute_type_id=data.attribute_type_id,
                is_required=data.is_required,
                expected_value=data.expected_value,
                created_by=created_by,
            ))
            profile = self.repo.save(profile)
        logger.info(
            "Added profile requirement",
            profile_id=profile_id, attribute_type_id=data.attribute_type_id,
            is_required=data.is_required,
        )
        return profile

    def remove_requirement(self, profile_id: int, requirement_id: int) -> ShiftProfile:
        with transaction(self.db):
            profile = self._get_or_raise(profile_id)
            requirement = next((r for r in profile.requirements if r.id == requirement_id), None)
            if requirement is None:
                raise NotFoundError("ProfileRequirement", requirement_id)
            profile.requirements.remove(requirement)
            profile = self.repo.save(profile)
        logger.info("Removed profile requirement", profile_id=profile_id, requirement_id=requirement_id)
        return profile

    # === Matching ===

    def find_matching_profiles(
        self, cab_type: Optional[str], share_type: Optional[str],
        has_airport_license: Optional[bool], shift_type: Optional[str],
    ) -> List[ShiftProfileRecord]:
        return self.matcher.find_matching_profiles(cab_type, share_type, has_airport_license, shift_type)

    def suggest_profiles(self, shift_id: int) -> List[ShiftProfileRecord]:
        return self.matcher.suggest_profiles(shift_id)

    def check_match(self, shift_id: int, profile_id: int, on_date: date) -> MatchResult:
        return self.matcher.explain(shift_id, profile_id, on_date)

    # === Assignments ===

    def assign_profile_to_shift(
        self,
        shift_id: int,
        profile_id: int,
        start_date: date,
        reason: Optional[str] = None,
        assigned_by: Optional[str] = None,
    ) -> ShiftProfileAssignment:
        """
        Assign a profile to a shift from start_date on.

        Only the static filters are checked; dynamic attributes may be given
        to the shift afterwards. The open assignment, if any, ends the day
        before start_date.

        Raises:
            NotFoundError: Unknown shift or profile
            ValidationError: Inactive profile, static mismatch, start date not
                after the open assignment's start
        """
        logger.info(
            "Assigning profile to shift",
            shift_id=shift_id, profile_id=profile_id, start_date=start_date.isoformat(),
        )
        with transaction(self.db):
            shift = self._get_shift_for_update(shift_id)
            profile = self._get_or_raise(profile_id)
            if not profile.is_active:
                raise ValidationError(f"Profile {profile.profile_code} is inactive")

            attrs = shift.static_attributes()
            mismatched = failed_static_fields(
                profile.to_record(), attrs.cab_type, attrs.share_type,
                attrs.has_airport_license, attrs.shift_type,
            )
            if mismatched:
                raise ValidationError(
                    f"Shift {shift_id} does not match profile {profile.profile_code} criteria",
                    {"failed_fields": mismatched},
                )

            current = self.assignments.find_open(shift_id)
            if current is not None:
                if start_date <= current.start_date:
                    raise ValidationError(
                        "New assignment must start after the current assignment's start date",
                        {"current_start_date": current.start_date.isoformat()},
                    )
                current.end_date = day_before(start_date)
                current.ended_by = assigned_by
                self.repo.adjust_usage(current.profile_id, -1)
                logger.info(
                    "Ended previous profile assignment",
                    assignment_id=current.id, profile_id=current.profile_id,
                    end_date=current.end_date.isoformat(),
                )

            assignment = self.assignments.add(ShiftProfileAssignment(
                shift_id=shift_id,
                profile_id=profile_id,
                start_date=start_date,
                reason=reason,
                assigned_by=assigned_by,
                created_by=assigned_by,
            ))
            self.repo.adjust_usage(profile_id, 1)
            shift.current_profile_id = profile_id
            self.db.flush()

        logger.info(
            "Assigned profile to shift",
            assignment_id=assignment.id, shift_id=shift_id, profile_id=profile_id,
        )
        return assignment

    def end_profile_assignment(
        self, shift_id: int, end_date: date, ended_by: Optional[str] = None
    ) -> ShiftProfileAssignment:
        """
        Close the shift's open assignment and clear its current profile.

        Raises:
            NotFoundError: Unknown shift, or no open assignment
            ValidationError: end_date before the assignment's start
        """
        with transaction(self.db):
            shift = self._get_shift_for_update(shift_id)
            current = self.assignments.find_open(shift_id)
            if current is None:
                raise NotFoundError(
                    "ShiftProfileAssignment", None,
                    message=f"No active profile assignment for shift {shift_id}",
                )
            validate_range(current.start_date, end_date)
            current.end_date = end_date
            current.ended_by = ended_by
            self.repo.adjust_usage(current.profile_id, -1)
            shift.current_profile_id = None
            self.db.flush()
        logger.info(
            "Ended profile assignment",
            assignment_id=current.id, shift_id=shift_id, end_date=end_date.isoformat(),
        )
        return current

    def get_current_assignment(self, shift_id: int) -> Optional[ShiftProfileAssignment]:
        return self.assignments.find_open(shift_id)

    def get_assignment_history(self, shift_id: int) -> List[ShiftProfileAssignment]:
        """All assignments of the shift, newest start date first."""
        return self.assignments.history(shift_id)

    def get_profile_on(self, shift_id: int, on_date: date) -> Optional[ShiftProfile]:
        """Profile whose assignment covered on_date, read from the audit log."""
        assignment = self.assignments.find_on(shift_id, on_date)
        return self.repo.get_by_id(assignment.profile_id) if assignment else None

    def reconcile_current_profile(self, shift_id: int) -> CabShift:
        """Reset the shift's current-profile pointer from its open assignment."""
        with transaction(self.db):
            shift = self._get_shift_for_update(shift_id)
            current = self.assignments.find_open(shift_id)
            expected = current.profile_id if current else None
            if shift.current_profile_id != expected:
                logger.warning(
                    "Current profile pointer out of sync",
                    shift_id=shift_id, pointer=shift.current_profile_id, expected=expected,
                )
                shift.current_profile_id = expected
                self.db.flush()
        return shift
