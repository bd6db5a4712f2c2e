"""Time-based cancellation refund rules."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from reservation_engine.core.exceptions import ValidationError
from reservation_engine.services.pricing_engine import quantize_money, to_decimal


@dataclass(frozen=True)
class RefundTier:
    min_hours: Decimal
    fraction: Decimal


@dataclass(frozen=True)
class RefundPolicy:
    name: str
    # Highest threshold first; the first tier whose ``min_hours`` is reached wins.
    tiers: Tuple[RefundTier, ...]

    def refund_fraction(self, hours_until_start: Decimal) -> Decimal:
        hours = to_decimal(hours_until_start)
        for tier in self.tiers:
            if hours >= tier.min_hours:
                return tier.fraction
        return Decimal("0")

    def refund_amount(self, total_amount: Decimal, hours_until_start: Decimal) -> Decimal:
        return quantize_money(to_decimal(total_amount) * self.refund_fraction(hours_until_start))


STANDARD_REFUND_POLICY = RefundPolicy(
    name="standard",
    tiers=(
        RefundTier(Decimal("24"), Decimal("1")),
        RefundTier(Decimal("2"), Decimal("0.5")),
    ),
)

FACILITY_REFUND_POLICY = RefundPolicy(
    name="facility",
    tiers=(
        RefundTier(Decimal("48"), Decimal("1")),
        RefundTier(Decimal("24"), Decimal("0.8")),
    ),
)

_POLICIES = {policy.name: policy for policy in (STANDARD_REFUND_POLICY, FACILITY_REFUND_POLICY)}


def policy_from_name(name: str) -> RefundPolicy:
    try:
        return _POLICIES[name.strip().lower()]
    except KeyError:
        raise ValidationError(
            f"Unknown refund policy '{name}'; expected one of {sorted(_POLICIES)}",
            field="refund_policy",
        ) from None


__all__ = [
    "FACILITY_REFUND_POLICY",
    "STANDARD_REFUND_POLICY",
    "RefundPolicy",
    "RefundTier",
    "policy_from_name",
]
