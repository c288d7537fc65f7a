"""Fare breakdown and money helpers."""

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from ..constants.pricing import CENT, FALLBACK_FARES, TAX_RATE
from ..core.enums import VehicleType
from ..core.exceptions import ValidationError

Money = Union[Decimal, int, float, str]

ZERO = Decimal("0.00")


def round2(value: Money) -> Decimal:
    """
    Round a money value half-up to cents.

    Floats are converted through ``str`` so 0.1 stays 0.1.

    Args:
        value: Amount to round

    Returns:
        Decimal with exactly two places

    Raises:
        ValidationError: If the value is not a number
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"not a valid amount: {value!r}", field="amount") from e


def to_cents(value: Money) -> int:
    """Convert an amount to integer cents."""
    return int(round2(value) * 100)


@dataclass(frozen=True)
class FareBreakdown:
    """
    Price of one vehicle type for one trip.

    Tax and total are derived, never stored. The surge multiplier is
    informational: the pricing service has already applied it to the base
    fare and mileage charge.
    """

    base_fare: Decimal
    mileage_charge: Decimal
    service_fee: Decimal
    surge_multiplier: Decimal = Decimal("1.0")
    coverage_fee: Decimal = ZERO
    driver_earnings: Optional[Decimal] = None

    def __post_init__(self) -> None:
        for name in ("base_fare", "mileage_charge", "service_fee", "coverage_fee"):
            amount = round2(getattr(self, name))
            if amount < 0:
                raise ValidationError("cannot be negative", field=name)
            object.__setattr__(self, name, amount)

        surge = Decimal(str(self.surge_multiplier))
        if surge < 1:
            raise ValidationError("must be at least 1.0", field="surge_multiplier")
        object.__setattr__(self, "surge_multiplier", surge)

        if self.driver_earnings is not None:
            object.__setattr__(self, "driver_earnings", round2(self.driver_earnings))

    @property
    def subtotal(self) -> Decimal:
        return round2(self.base_fare + self.mileage_charge + self.service_fee + self.coverage_fee)

    @property
    def tax(self) -> Decimal:
        return round2(self.subtotal * TAX_RATE)

    @property
    def total(self) -> Decimal:
        return round2(self.subtotal + self.tax)

    def with_coverage(self, fee: Money) -> "FareBreakdown":
        """Return a copy carrying ``fee`` as the coverage fee."""
        return replace(self, coverage_fee=round2(fee))

    @classmethod
    def from_service(cls, payload: Dict[str, Any]) -> "FareBreakdown":
        """
        Build a breakdown from one entry of the pricing service ``prices`` map.

        The service's own ``total`` is ignored; totals are always derived.

        Raises:
            ValidationError: If a required amount is missing or malformed
        """
        try:
            earnings = payload.get("driverEarnings")
            return cls(
                base_fare=round2(payload["baseFare"]),
                mileage_charge=round2(payload["mileageCharge"]),
                service_fee=round2(payload["serviceFee"]),
                surge_multiplier=Decimal(str(payload.get("surgeMultiplier") or 1)),
                driver_earnings=round2(earnings) if earnings is not None else None,
            )
        except KeyError as e:
            raise ValidationError(f"missing {e.args[0]} in price entry", field=e.args[0]) from e
        except InvalidOperation as e:
            raise ValidationError("malformed surge multiplier", field="surgeMultiplier") from e

    @classmethod
    def fallback(cls, vehicle_type: VehicleType) -> "FareBreakdown":
        """Static estimate used when live pricing is unavailable."""
        base, mileage, service = FALLBACK_FARES[vehicle_type.value]
        return cls(
            base_fare=Decimal(base),
            mileage_charge=Decimal(mileage),
            service_fee=Decimal(service),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseFare": str(self.base_fare),
            "mileageCharge": str(self.mileage_charge),
            "serviceFee": str(self.service_fee),
            "surgeMultiplier": str(self.surge_multiplier),
            "coverageFee": str(self.coverage_fee),
            "driverEarnings": (
                str(self.driver_earnings) if self.driver_earnings is not None else None
            ),
            "tax": str(self.tax),
            "total": str(self.total),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FareBreakdown":
        earnings = data.get("driverEarnings")
        return cls(
            base_fare=round2(data["baseFare"]),
            mileage_charge=round2(data["mileageCharge"]),
            service_fee=round2(data["serviceFee"]),
            surge_multiplier=Decimal(str(data.get("surgeMultiplier") or 1)),
            coverage_fee=round2(data.get("coverageFee") or 0),
            driver_earnings=round2(earnings) if earnings is not None else None,
        )
