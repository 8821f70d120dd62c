# app/profiles/evaluator.py

"""
Attribute requirement evaluation.

A requirement either demands an attribute (optionally with one exact value)
or demands its absence. The actual value passed in is None when the shift
does not hold the attribute and a string (possibly empty) when it does.
"""

from typing import Iterable, List, Mapping, Optional

from app.profiles.schemas import AttributeRequirementRecord


def satisfies(requirement: AttributeRequirementRecord, actual_value: Optional[str]) -> bool:
    if actual_value is None:
        return not requirement.is_required

    if not requirement.is_required:
        return False

    if requirement.expected_value is not None:
        return requirement.expected_value == actual_value

    return True


def failing_requirements(
    requirements: Iterable[AttributeRequirementRecord],
    values_by_type: Mapping[int, str],
) -> List[AttributeRequirementRecord]:
    """Requirements not satisfied by the attribute values, in input order."""
    return [
        r for r in requirements
        if not satisfies(r, values_by_type.get(r.attribute_type_id))
    ]


def all_satisfied(
    requirements: Iterable[AttributeRequirementRecord],
    values_by_type: Mapping[int, str],
) -> bool:
    return all(satisfies(r, values_by_type.get(r.attribute_type_id)) for r in requirements)
