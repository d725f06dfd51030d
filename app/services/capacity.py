"""
Effective capacity formula and capacity input validation.

    effective = clamp(0, (working_days - leaves) * availability / 100, working_days)

rounded half-up to one decimal place. Work mode is carried on the member for
reporting and has no weight in the formula.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from ..core.exceptions import InvalidAvailabilityError, InvalidLeavesError

ONE_DECIMAL = Decimal("0.1")


def round_half_up(value: Decimal, exponent: Decimal = Decimal("1")) -> Decimal:
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def validate_leaves(leaves: Any) -> int:
    if isinstance(leaves, bool) or not isinstance(leaves, int):
        raise InvalidLeavesError(f"Leaves must be a whole number of days, got {leaves!r}")
    if leaves < 0:
        raise InvalidLeavesError(f"Leaves cannot be negative, got {leaves}")
    return leaves


def validate_availability(availability_percent: Any) -> int:
    if isinstance(availability_percent, bool) or not isinstance(availability_percent, int):
        raise InvalidAvailabilityError(
            f"Availability must be a whole percentage, got {availability_percent!r}"
        )
    if not 0 <= availability_percent <= 100:
        raise InvalidAvailabilityError(
            f"Availability must be between 0 and 100, got {availability_percent}"
        )
    return availability_percent


def effective_capacity(working_days: int, leaves: int, availability_percent: int) -> float:
    """Member capacity in days for an iteration with ``working_days`` days.

    Leaves above the iteration length clamp the result to zero.
    """
    validate_leaves(leaves)
    validate_availability(availability_percent)

    days = Decimal(working_days)
    raw = (days - Decimal(leaves)) * Decimal(availability_percent) / Decimal(100)
    clamped = max(Decimal(0), min(raw, days))
    return float(round_half_up(clamped, ONE_DECIMAL))


def days_present_for(availability_percent: int, days_total: int) -> int:
    """Whole days present in a week implied by an availability percentage."""
    raw = Decimal(availability_percent) / Decimal(100) * Decimal(days_total)
    return int(round_half_up(raw))
