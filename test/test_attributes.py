from datetime import date

import pytest

from app.attributes.schemas import (
    AssignAttributeRequest, AttributeCategory, AttributeTypeCreate, AttributeTypeUpdate,
)
from app.core.exceptions import ConflictError, NotFoundError, ValidationError


def assign(attributes, shift_id, type_id, value=None, start=date(2025, 1, 1), end=None):
    return attributes.assign_attribute(shift_id, AssignAttributeRequest(
        attribute_type_id=type_id, attribute_value=value, start_date=start, end_date=end,
    ))


def test_attribute_codes_are_unique(attributes, transponder):
    assert transponder.attribute_code == "TRANSPONDER"
    with pytest.raises(ValidationError):
        attributes.create_type(AttributeTypeCreate(
            attribute_code="transponder", attribute_name="Again", category=AttributeCategory.EQUIPMENT,
        ))


def test_value_required_when_type_demands_it(attributes, night_shift, rating):
    with pytest.raises(ValidationError):
        assign(attributes, night_shift.id, rating.id)

    stored = assign(attributes, night_shift.id, rating.id, value=" GOLD ")
    assert stored.attribute_value == "GOLD"


def test_unknown_or_inactive_type(attributes, night_shift, transponder):
    with pytest.raises(NotFoundError):
        assign(attributes, night_shift.id, 404)
    with pytest.raises(NotFoundError):
        assign(attributes, 404, transponder.id)

    attributes.set_type_active(transponder.id, False)
    with pytest.raises(ValidationError):
        assign(attributes, night_shift.id, transponder.id)


def test_validation_pattern_is_enforced(attributes, night_shift):
    medallion = attributes.create_type(AttributeTypeCreate(
        attribute_code="MEDALLION", attribute_name="Medallion number",
        category=AttributeCategory.PERMIT, requires_value=True, validation_pattern=r"\d[A-Z]\d{2}",
    ))

    with pytest.raises(ValidationError):
        assign(attributes, night_shift.id, medallion.id, value="ABCD")
    assert assign(attributes, night_shift.id, medallion.id, value="5J23").attribute_value == "5J23"

    with pytest.raises(ValidationError):
        attributes.update_type(medallion.id, AttributeTypeUpdate(validation_pattern="[unclosed"))


def test_overlapping_values_conflict(attributes, night_shift, rating):
    first = assign(attributes, night_shift.id, rating.id, value="GOLD", end=date(2025, 1, 31))

    with pytest.raises(ConflictError) as exc_info:
        assign(attributes, night_shift.id, rating.id, value="SILVER", start=date(2025, 1, 31))
    assert exc_info.value.details["conflicting_id"] == first.id

    assign(attributes, night_shift.id, rating.id, value="SILVER", start=date(2025, 2, 1))


def test_other_shift_is_independent(attributes, night_shift, day_shift, transponder):
    assign(attributes, night_shift.id, transponder.id)
    assign(attributes, day_shift.id, transponder.id)

    assert attributes.find_current_attribute_values(day_shift.id, date(2025, 1, 6)) == [(transponder.id, "")]


def test_current_values_distinguish_present_from_absent(attributes, night_shift, transponder, rating):
    assign(attributes, night_shift.id, transponder.id)
    assign(attributes, night_shift.id, rating.id, value="GOLD", start=date(2025, 2, 1))

    january = dict(attributes.find_current_attribute_values(night_shift.id, date(2025, 1, 15)))
    february = dict(attributes.find_current_attribute_values(night_shift.id, date(2025, 2, 15)))

    assert january == {transponder.id: ""}
    assert february == {transponder.id: "", rating.id: "GOLD"}


def test_end_attribute(attributes, night_shift, transponder):
    held = assign(attributes, night_shift.id, transponder.id)

    with pytest.raises(ValidationError):
        attributes.end_attribute(held.id, date(2024, 12, 1))

    ended = attributes.end_attribute(held.id, date(2025, 1, 31))
    assert ended.end_date == date(2025, 1, 31)
    assert attributes.find_current_attribute_values(night_shift.id, date(2025, 2, 1)) == []
    with pytest.raises(NotFoundError):
        attributes.end_attribute(404, date(2025, 1, 31))
