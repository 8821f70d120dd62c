import pytest

from app.profiles.evaluator import all_satisfied, failing_requirements, satisfies
from app.profiles.schemas import AttributeRequirementRecord


def req(is_required=True, expected_value=None, attribute_type_id=1):
    return AttributeRequirementRecord(
        attribute_type_id=attribute_type_id,
        is_required=is_required,
        expected_value=expected_value,
    )


@pytest.mark.parametrize(
    "is_required, expected_value, actual, result",
    [
        (True, None, None, False),
        (True, "GOLD", None, False),
        (True, None, "", True),
        (True, None, "anything", True),
        (True, "GOLD", "GOLD", True),
        (True, "GOLD", "SILVER", False),
        (True, "GOLD", "gold", False),
        (False, None, None, True),
        (False, "GOLD", None, True),
        (False, None, "", False),
        (False, "GOLD", "GOLD", False),
    ],
)
def test_satisfies_truth_table(is_required, expected_value, actual, result):
    assert satisfies(req(is_required, expected_value), actual) is result


def test_failing_requirements_reports_each_failure():
    requirements = [
        req(True, None, attribute_type_id=1),
        req(False, None, attribute_type_id=2),
        req(True, "5", attribute_type_id=3),
    ]
    values = {1: "", 2: "", 3: "4"}

    failed = failing_requirements(requirements, values)

    assert [r.attribute_type_id for r in failed] == [2, 3]
    assert not all_satisfied(requirements, values)


def test_no_requirements_are_always_satisfied():
    assert all_satisfied([], {})
    assert failing_requirements([], {1: "x"}) == []
