from decimal import Decimal

import pytest

from reservation_engine.core.exceptions import ValidationError
from reservation_engine.services.refund_policy import (
    FACILITY_REFUND_POLICY,
    STANDARD_REFUND_POLICY,
    policy_from_name,
)

TOTAL = Decimal("783.00")


@pytest.mark.parametrize(
    "hours, expected",
    [
        ("30", "783.00"),
        ("24", "783.00"),
        ("23.99", "391.50"),
        ("10", "391.50"),
        ("2", "391.50"),
        ("1.99", "0.00"),
        ("0", "0.00"),
        ("-3", "0.00"),
    ],
)
def test_standard_policy_thresholds(hours, expected):
    assert STANDARD_REFUND_POLICY.refund_amount(TOTAL, Decimal(hours)) == Decimal(expected)


@pytest.mark.parametrize(
    "hours, expected",
    [("48", "783.00"), ("47", "626.40"), ("24", "626.40"), ("23", "0.00")],
)
def test_facility_policy_thresholds(hours, expected):
    assert FACILITY_REFUND_POLICY.refund_amount(TOTAL, Decimal(hours)) == Decimal(expected)


@pytest.mark.parametrize("policy", [STANDARD_REFUND_POLICY, FACILITY_REFUND_POLICY])
def test_refund_never_increases_as_start_approaches(policy):
    amounts = [policy.refund_amount(TOTAL, Decimal(hours) / 4) for hours in range(400, -40, -1)]
    assert all(later <= earlier for earlier, later in zip(amounts, amounts[1:]))


def test_policy_lookup_by_name():
    assert policy_from_name("standard") is STANDARD_REFUND_POLICY
    assert policy_from_name(" Facility ") is FACILITY_REFUND_POLICY
    with pytest.raises(ValidationError):
        policy_from_name("generous")
