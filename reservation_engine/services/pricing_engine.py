"""Price a court booking window.

``subtotal = base_rate * hours * peak_multiplier * weekend_multiplier``; tax
and the optional service fee are applied on the rounded subtotal so that the
returned components always add up to ``total_amount`` to the cent.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Tuple

from reservation_engine.core.config import settings
from reservation_engine.core.exceptions import ValidationError
from reservation_engine.services.time_model import TimeLike, duration_minutes, ensure_window, to_minutes

CENTS = Decimal("0.01")
MULTIPLIER_PLACES = Decimal("0.0001")
ONE = Decimal("1")
SIXTY = Decimal("60")


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: Decimal = Decimal("0.16")
    service_fee_rate: Decimal = Decimal("0.03")
    apply_service_fee: bool = False
    # Start-hour ranges [from, to) where the peak multiplier applies.
    peak_hours: Tuple[Tuple[int, int], ...] = ((6, 8), (18, 22))
    # ``date.weekday()`` values treated as weekend.
    weekend_days: Tuple[int, ...] = (5, 6)

    @classmethod
    def from_settings(cls) -> "PricingConfig":
        return cls(
            tax_rate=Decimal(settings.TAX_RATE),
            service_fee_rate=Decimal(settings.SERVICE_FEE_RATE),
            apply_service_fee=settings.SERVICE_FEE_ENABLED,
        )

    def is_peak_hour(self, hour: int) -> bool:
        return any(start <= hour < end for start, end in self.peak_hours)

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.weekend_days


@dataclass(frozen=True)
class SpecialRate:
    start_time: TimeLike
    end_time: TimeLike
    rate: Decimal
    # Later blocks win when several cover the same start.
    priority: int = 0


@dataclass(frozen=True)
class PriceBreakdown:
    base_rate: Decimal
    duration_minutes: int
    duration_hours: Decimal
    peak_multiplier: Decimal
    weekend_multiplier: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    service_fee: Decimal
    total_amount: Decimal
    special_rate_applied: bool = field(default=False)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class PricingEngine:
    """Stateless calculator; one instance can be shared across requests."""

    def __init__(self, config: Optional[PricingConfig] = None) -> None:
        self.config = config or PricingConfig()

    def calculate_price(
        self,
        court,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
        *,
        special_rates: Iterable[SpecialRate] = (),
    ) -> PriceBreakdown:
        """Price one window on ``court``.

        The subtotal is rounded to cents first, and tax and service fee are
        computed from that rounded subtotal rather than the exact one. This can
        move the tax by one cent, but ``subtotal + tax_amount + service_fee``
        always equals ``total_amount``.
        """

        start_value, end_value = ensure_window(start_time, end_time)
        minutes = duration_minutes(start_value, end_value)
        duration_hours = Decimal(minutes) / SIXTY

        base_rate = to_decimal(court.base_rate)
        if base_rate < 0:
            raise ValidationError("Court base rate cannot be negative", field="base_rate")

        special = self._select_special_rate(start_value, special_rates)
        if special is not None:
            base_rate = to_decimal(special.rate)
            peak_multiplier = ONE
            weekend_multiplier = ONE
        else:
            peak_multiplier = self._peak_multiplier(court, start_value.hour)
            weekend_multiplier = self._weekend_multiplier(court, target_date)

        subtotal = quantize_money(base_rate * duration_hours * peak_multiplier * weekend_multiplier)
        tax_amount = quantize_money(subtotal * self.config.tax_rate)
        service_fee = (
            quantize_money(subtotal * self.config.service_fee_rate)
            if self.config.apply_service_fee
            else quantize_money(Decimal("0"))
        )

        return PriceBreakdown(
            base_rate=quantize_money(base_rate),
            duration_minutes=minutes,
            duration_hours=duration_hours.quantize(MULTIPLIER_PLACES, rounding=ROUND_HALF_UP),
            peak_multiplier=peak_multiplier.quantize(MULTIPLIER_PLACES, rounding=ROUND_HALF_UP),
            weekend_multiplier=weekend_multiplier.quantize(
                MULTIPLIER_PLACES, rounding=ROUND_HALF_UP
            ),
            subtotal=subtotal,
            tax_amount=tax_amount,
            service_fee=service_fee,
            total_amount=subtotal + tax_amount + service_fee,
            special_rate_applied=special is not None,
        )

    def _peak_multiplier(self, court, start_hour: int) -> Decimal:
        if not self.config.is_peak_hour(start_hour):
            return ONE
        return self._ratio(court.peak_rate, court.base_rate)

    def _weekend_multiplier(self, court, target_date: date) -> Decimal:
        if not self.config.is_weekend(target_date):
            return ONE
        weekend_rate = getattr(court, "weekend_rate", None)
        if weekend_rate is not None:
            return self._ratio(weekend_rate, court.base_rate)
        return self._ratio(court.peak_rate, court.base_rate)

    @staticmethod
    def _ratio(rate: Any, base_rate: Any) -> Decimal:
        base = to_decimal(base_rate)
        if rate is None or base == 0:
            return ONE
        return to_decimal(rate) / base

    @staticmethod
    def _select_special_rate(start_value, special_rates: Iterable[SpecialRate]) -> Optional[SpecialRate]:
        start_minutes = to_minutes(start_value)
        covering = [
            special
            for special in special_rates
            if to_minutes(special.start_time) <= start_minutes < to_minutes(special.end_time)
        ]
        if not covering:
            return None
        return max(covering, key=lambda special: special.priority)


__all__ = [
    "PriceBreakdown",
    "PricingConfig",
    "PricingEngine",
    "SpecialRate",
    "quantize_money",
    "to_decimal",
]
