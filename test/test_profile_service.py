from datetime import date

import pytest

from app.attributes.schemas import AssignAttributeRequest
from app.core.exceptions import NotFoundError, ValidationError
from app.fleet.schemas import ShareType, ShiftType
from app.profiles.schemas import ProfileRequirementCreate, ShiftProfileCreate, ShiftProfileUpdate
from app.profiles.services import ShiftProfileService


@pytest.fixture()
def profiles(db_session):
    return ShiftProfileService(db_session)


def create(profiles, code, **kwargs):
    return profiles.create_profile(ShiftProfileCreate(profile_code=code, profile_name=code.title(), **kwargs))


def test_profile_codes_are_unique(profiles):
    created = create(profiles, "voting_night", share_type=ShareType.VOTING_SHARE)
    assert created.profile_code == "VOTING_NIGHT"
    assert created.usage_count == 0

    with pytest.raises(ValidationError):
        create(profiles, "VOTING_NIGHT")


def test_requirement_needs_known_attribute_type(profiles):
    with pytest.raises(NotFoundError):
        create(profiles, "P", requirements=[ProfileRequirementCreate(attribute_type_id=404)])


def test_requirements_are_unique_per_attribute_type(profiles, transponder):
    p = create(profiles, "P", requirements=[ProfileRequirementCreate(attribute_type_id=transponder.id)])

    with pytest.raises(ValidationError):
        profiles.add_requirement(p.id, ProfileRequirementCreate(attribute_type_id=transponder.id, is_required=False))
    with pytest.raises(NotFoundError):
        profiles.add_requirement(p.id, ProfileRequirementCreate(attribute_type_id=404))

    updated = profiles.remove_requirement(p.id, p.requirements[0].id)
    assert updated.requirements == []


def test_update_replaces_requirements_on_system_profile(profiles, transponder, rating):
    p = create(
        profiles, "SYS", is_system_profile=True,
        requirements=[ProfileRequirementCreate(attribute_type_id=transponder.id)],
    )

    updated = profiles.update_profile(p.id, ShiftProfileUpdate(
        profile_name="System default",
        shift_type=ShiftType.NIGHT,
        requirements=[ProfileRequirementCreate(attribute_type_id=rating.id, expected_value="GOLD")],
    ))

    assert updated.profile_name == "System default"
    assert updated.shift_type == "NIGHT"
    assert [(r.attribute_type_id, r.expected_value) for r in updated.requirements] == [(rating.id, "GOLD")]


def test_assignment_requires_static_match(profiles, night_shift):
    day_only = create(profiles, "DAY_ONLY", shift_type=ShiftType.DAY)

    with pytest.raises(ValidationError) as exc_info:
        profiles.assign_profile_to_shift(night_shift.id, day_only.id, date(2025, 1, 1))

    assert exc_info.value.details["failed_fields"] == ["shift_type"]
    assert profiles.get_current_assignment(night_shift.id) is None


def test_inactive_profile_cannot_be_assigned(profiles, night_shift):
    p = create(profiles, "RETIRED")
    profiles.deactivate_profile(p.id)

    with pytest.raises(ValidationError):
        profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 1, 1))
    assert profiles.find_matching_profiles("SEDAN", "VOTING_SHARE", True, "NIGHT") == []


def test_reassignment_ends_previous_and_moves_usage(profiles, night_shift):
    first = create(profiles, "VOTING", share_type=ShareType.VOTING_SHARE)
    second = create(profiles, "ANY")

    profiles.assign_profile_to_shift(night_shift.id, first.id, date(2025, 1, 1), reason="initial", assigned_by="ops")
    profiles.assign_profile_to_shift(night_shift.id, second.id, date(2025, 2, 1), assigned_by="ops")

    history = profiles.get_assignment_history(night_shift.id)
    assert [a.profile_id for a in history] == [second.id, first.id]
    assert history[1].end_date == date(2025, 1, 31)
    assert history[1].ended_by == "ops"
    assert history[0].end_date is None

    assert profiles.get_profile(first.id).usage_count == 0
    assert profiles.get_profile(second.id).usage_count == 1
    assert night_shift.current_profile_id == second.id

    assert profiles.get_profile_on(night_shift.id, date(2025, 1, 15)).id == first.id
    assert profiles.get_profile_on(night_shift.id, date(2025, 3, 1)).id == second.id
    assert profiles.get_profile_on(night_shift.id, date(2024, 12, 31)) is None


def test_new_assignment_must_start_after_current(profiles, night_shift):
    p = create(profiles, "P")
    profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 2, 1))

    with pytest.raises(ValidationError):
        profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 2, 1))
    assert profiles.get_profile(p.id).usage_count == 1


def test_assignment_may_start_inside_closed_history(profiles, night_shift):
    first = create(profiles, "FIRST")
    second = create(profiles, "SECOND")
    profiles.assign_profile_to_shift(night_shift.id, first.id, date(2025, 1, 1))
    profiles.end_profile_assignment(night_shift.id, date(2025, 1, 31))

    assignment = profiles.assign_profile_to_shift(night_shift.id, second.id, date(2025, 1, 15))

    assert assignment.start_date == date(2025, 1, 15)
    assert profiles.get_current_assignment(night_shift.id).id == assignment.id
    assert profiles.get_profile(first.id).usage_count == 0
    assert profiles.get_profile(second.id).usage_count == 1


def test_concurrent_assignments_count_every_shift(profiles, second_session, night_shift, day_shift):
    shared = create(profiles, "SHARED")
    other = ShiftProfileService(second_session)
    assert other.get_profile(shared.id).usage_count == 0

    profiles.assign_profile_to_shift(night_shift.id, shared.id, date(2025, 1, 1))
    other.assign_profile_to_shift(day_shift.id, shared.id, date(2025, 1, 1))

    assert profiles.get_profile(shared.id).usage_count == 2


def test_end_assignment_clears_pointer_and_usage(profiles, night_shift):
    p = create(profiles, "P")
    with pytest.raises(NotFoundError):
        profiles.end_profile_assignment(night_shift.id, date(2025, 1, 31))

    profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 1, 1))
    with pytest.raises(ValidationError):
        profiles.end_profile_assignment(night_shift.id, date(2024, 12, 31))

    ended = profiles.end_profile_assignment(night_shift.id, date(2025, 1, 31), ended_by="ops")

    assert ended.end_date == date(2025, 1, 31)
    assert night_shift.current_profile_id is None
    assert profiles.get_profile(p.id).usage_count == 0
    assert profiles.get_current_assignment(night_shift.id) is None


def test_usage_count_never_goes_negative(profiles, night_shift, db_session):
    p = create(profiles, "P")
    profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 1, 1))
    stored = profiles.get_profile(p.id)
    stored.usage_count = 0
    db_session.commit()

    profiles.end_profile_assignment(night_shift.id, date(2025, 1, 31))

    assert profiles.get_profile(p.id).usage_count == 0


def test_delete_rules(profiles, night_shift, day_shift):
    system = create(profiles, "SYSTEM", is_system_profile=True)
    in_use = create(profiles, "IN_USE")
    retired = create(profiles, "RETIRED")
    unused = create(profiles, "UNUSED")
    profiles.assign_profile_to_shift(night_shift.id, in_use.id, date(2025, 1, 1))
    profiles.assign_profile_to_shift(day_shift.id, retired.id, date(2025, 1, 1))
    profiles.end_profile_assignment(day_shift.id, date(2025, 1, 31))

    with pytest.raises(ValidationError, match="system profile"):
        profiles.delete_profile(system.id)
    with pytest.raises(ValidationError, match="assigned to 1 shift"):
        profiles.delete_profile(in_use.id)
    with pytest.raises(ValidationError, match="assignment history"):
        profiles.delete_profile(retired.id)

    profiles.delete_profile(unused.id)
    with pytest.raises(NotFoundError):
        profiles.get_profile(unused.id)


def test_check_match_uses_current_attributes(profiles, attributes, night_shift, transponder):
    p = create(profiles, "EZPASS", requirements=[ProfileRequirementCreate(attribute_type_id=transponder.id)])

    before = profiles.check_match(night_shift.id, p.id, date(2025, 1, 6))
    assert before.static_match and not before.matched

    attributes.assign_attribute(
        night_shift.id, AssignAttributeRequest(attribute_type_id=transponder.id, start_date=date(2025, 1, 1))
    )

    assert profiles.check_match(night_shift.id, p.id, date(2025, 1, 6)).matched
    assert not profiles.check_match(night_shift.id, p.id, date(2024, 12, 31)).matched


def test_suggest_profiles_for_stored_shift(profiles, night_shift):
    create(profiles, "NIGHTS", shift_type=ShiftType.NIGHT, display_order=2)
    create(profiles, "VOTING", share_type=ShareType.VOTING_SHARE, display_order=1)
    create(profiles, "DAYS", shift_type=ShiftType.DAY)

    assert [p.profile_code for p in profiles.suggest_profiles(night_shift.id)] == ["VOTING", "NIGHTS"]


def test_reconcile_restores_pointer_from_audit_log(profiles, night_shift, db_session):
    p = create(profiles, "P")
    profiles.assign_profile_to_shift(night_shift.id, p.id, date(2025, 1, 1))
    night_shift.current_profile_id = None
    db_session.commit()

    shift = profiles.reconcile_current_profile(night_shift.id)

    assert shift.current_profile_id == p.id
