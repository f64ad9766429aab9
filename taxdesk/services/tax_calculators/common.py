"""
TaxDesk NG - Calculator Primitives

Rate validation, money rounding and the exemption reasons shared by
all calculators.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, List, Tuple

from taxdesk.utils.error_handling import ComputationInconsistencyException, InvalidRateException

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class ExemptionReason(str, Enum):
    """Why an income tax liability is zero. Shown to the taxpayer."""
    NO_INCOME = "no_income"
    THRESHOLD = "threshold"
    DEDUCTIONS_ONLY = "deductions_only"


def round_money(value: Decimal) -> Decimal:
    """Round to kobo, half up."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def ensure_valid_rate(rate: Any, rate_name: str) -> Decimal:
    """
    Return `rate` as a Decimal percentage.

    Raises:
        InvalidRateException: rate is missing, non-numeric, NaN, infinite,
            negative or above 100.
    """
    if rate is None or isinstance(rate, bool) or not isinstance(rate, (int, float, Decimal)):
        raise InvalidRateException(rate, rate_name)
    try:
        value = rate if isinstance(rate, Decimal) else Decimal(str(rate))
    except InvalidOperation:
        raise InvalidRateException(rate, rate_name)
    if not value.is_finite() or value < ZERO or value > HUNDRED:
        raise InvalidRateException(rate, rate_name)
    return value


def ensure_amount(value: Any, name: str) -> Decimal:
    """
    Return an aggregated amount as a Decimal.

    Aggregates come from the database, so a negative or non-finite value
    means the source data is corrupt.
    """
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ComputationInconsistencyException(
            f"{name} is not a number: {value!r}",
            details={"field": name},
        )
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite() or amount < ZERO:
        raise ComputationInconsistencyException(
            f"{name} must be a finite, non-negative amount, got {value!r}",
            details={"field": name, "value": str(value)},
        )
    return amount


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED


def apply_bands(taxable_income: Decimal, bands: Iterable, rate_name: str) -> Tuple[Decimal, List[dict]]:
    """
    Progressive tax over `bands`.

    Returns the unrounded tax and a per-band breakdown for bands that
    received income.
    """
    total = ZERO
    breakdown = []
    for band in bands:
        rate = ensure_valid_rate(band.rate, rate_name)
        in_band = band.taxable_in_band(taxable_income)
        if in_band <= 0:
            continue
        tax = percent_of(in_band, rate)
        total += tax
        breakdown.append({
            "lower": str(round_money(band.lower)),
            "upper": str(round_money(band.upper)) if band.upper is not None else None,
            "rate": str(rate),
            "taxable_amount": str(round_money(in_band)),
            "tax": str(round_money(tax)),
        })
    return total, breakdown
