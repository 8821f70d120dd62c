# app/profiles/matcher.py

"""
Profile Matcher.

A shift qualifies for a profile in two layers:

1. Static: each of the profile's four filters (cab type, share type, airport
   license, shift type) is None or equal to the shift's value.
2. Dynamic: every attribute requirement of the profile is satisfied by the
   attributes the shift holds on the date in question.

Lookups are injected; the matcher itself does no I/O.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from app.core.exceptions import NotFoundError
from app.fleet.schemas import ShiftContext, ShiftStaticAttributes
from app.profiles.evaluator import failing_requirements
from app.profiles.schemas import MatchResult, ShiftProfileRecord
from app.utils.logger import get_logger

logger = get_logger(__name__)

STATIC_FIELDS = ("cab_type", "share_type", "has_airport_license", "shift_type")


# === Collaborator contracts ===

class ProfileLookup(Protocol):
    def find_active_profiles_matching_static(
        self, cab_type: Optional[str], share_type: Optional[str],
        has_airport_license: Optional[bool], shift_type: Optional[str],
    ) -> List[ShiftProfileRecord]:
        ...

    def find_profile_by_id(self, profile_id: int) -> Optional[ShiftProfileRecord]:
        ...


class AttributeLookup(Protocol):
    def find_current_attribute_values(self, shift_id: int, on_date: date) -> List[Tuple[int, str]]:
        ...


class ShiftLookup(Protocol):
    def find_shift_context(self, shift_id: int) -> Optional[ShiftContext]:
        ...


# === Static matching ===

def _plain(value):
    return value.value if isinstance(value, Enum) else value


def failed_static_fields(
    profile: ShiftProfileRecord,
    cab_type: Optional[str],
    share_type: Optional[str],
    has_airport_license: Optional[bool],
    shift_type: Optional[str],
) -> List[str]:
    """Names of the profile's static filters the shift values do not satisfy."""
    actual = {
        "cab_type": _plain(cab_type),
        "share_type": _plain(share_type),
        "has_airport_license": has_airport_license,
        "shift_type": _plain(shift_type),
    }
    failed = []
    for field in STATIC_FIELDS:
        wanted = _plain(getattr(profile, field))
        if wanted is not None and wanted != actual[field]:
            failed.append(field)
    return failed


def static_match(
    profile: ShiftProfileRecord,
    cab_type: Optional[str],
    share_type: Optional[str],
    has_airport_license: Optional[bool],
    shift_type: Optional[str],
) -> bool:
    return not failed_static_fields(profile, cab_type, share_type, has_airport_license, shift_type)


def static_match_shift(profile: ShiftProfileRecord, attributes: ShiftStaticAttributes) -> bool:
    return static_match(
        profile, attributes.cab_type, attributes.share_type,
        attributes.has_airport_license, attributes.shift_type,
    )


def _display_key(profile: ShiftProfileRecord):
    return (profile.display_order, profile.id or 0)


# === Matcher ===

class ProfileMatcher:
    """
    Finds the profiles a shift qualifies for and checks a shift against a
    single profile.
    """

    def __init__(self, profiles: ProfileLookup, attributes: AttributeLookup, shifts: ShiftLookup):
        self.profiles = profiles
        self.attributes = attributes
        self.shifts = shifts

    def find_matching_profiles(
        self,
        cab_type: Optional[str],
        share_type: Optional[str],
        has_airport_license: Optional[bool],
        shift_type: Optional[str],
    ) -> List[ShiftProfileRecord]:
        """Active profiles whose static filters admit the values, by display order."""
        candidates = self.profiles.find_active_profiles_matching_static(
            _plain(cab_type), _plain(share_type), has_airport_license, _plain(shift_type)
        )
        matched = [
            p for p in candidates
            if p.is_active and static_match(p, cab_type, share_type, has_airport_license, shift_type)
        ]
        matched.sort(key=_display_key)
        logger.debug(
            "Static profile match",
            cab_type=_plain(cab_type), share_type=_plain(share_type),
            has_airport_license=has_airport_license, shift_type=_plain(shift_type),
            candidates=len(candidates), matched=len(matched),
        )
        return matched

    def _load(self, shift_id: int, profile_id: int) -> Tuple[ShiftContext, ShiftProfileRecord]:
        shift = self.shifts.find_shift_context(shift_id)
        if shift is None:
            raise NotFoundError("Shift", shift_id)
        profile = self.profiles.find_profile_by_id(profile_id)
        if profile is None:
            raise NotFoundError("ShiftProfile", profile_id)
        return shift, profile

    def _values_by_type(self, shift_id: int, on_date: date) -> Dict[int, str]:
        return {
            type_id: value
            for type_id, value in self.attributes.find_current_attribute_values(shift_id, on_date)
        }

    def explain(self, shift_id: int, profile_id: int, on_date: date) -> MatchResult:
        """
        Full static plus dynamic check, reporting what failed.

        Dynamic requirements are only evaluated when the static layer passes.

        Raises:
            NotFoundError: Unknown shift or profile
        """
        shift, profile = self._load(shift_id, profile_id)
        attrs = shift.attributes
        static_failures = failed_static_fields(
            profile, attrs.cab_type, attrs.share_type, attrs.has_airport_license, attrs.shift_type
        )

        requirement_failures = []
        if not static_failures and profile.requirements:
            requirement_failures = failing_requirements(
                profile.requirements, self._values_by_type(shift_id, on_date)
            )

        result = MatchResult(
            shift_id=shift_id,
            profile_id=profile_id,
            on_date=on_date,
            matched=not static_failures and not requirement_failures,
            static_match=not static_failures,
            failed_static_fields=static_failures,
            failed_requirements=requirement_failures,
        )
        logger.debug(
            "Profile match evaluated",
            shift_id=shift_id, profile_id=profile_id, on_date=on_date.isoformat(),
            matched=result.matched, failed_static=static_failures,
            failed_requirements=[r.attribute_type_id for r in requirement_failures],
        )
        return result

    def matches(self, shift_id: int, profile_id: int, on_date: date) -> bool:
        return self.explain(shift_id, profile_id, on_date).matched

    def suggest_profiles(self, shift_id: int) -> List[ShiftProfileRecord]:
        """Static matches for a stored shift."""
        shift = self.shifts.find_shift_context(shift_id)
        if shift is None:
            raise NotFoundError("Shift", shift_id)
        attrs = shift.attributes
        return self.find_matching_profiles(
            attrs.cab_type, attrs.share_type, attrs.has_airport_license, attrs.shift_type
        )
