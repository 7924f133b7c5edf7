"""Conversion of an annual nominal rate into a per-period rate."""

from __future__ import annotations

from decimal import Decimal

from .data_models import PeriodicRate, RepaymentFrequency
from .errors import InvalidInputError

PERIODS_PER_YEAR = {
    RepaymentFrequency.MONTHLY: 12,
    RepaymentFrequency.FORTNIGHTLY: 26,
    RepaymentFrequency.WEEKLY: 52,
}


def convert_rate(interest_rate: Decimal, repayment_frequency: RepaymentFrequency) -> PeriodicRate:
    """Return the periodic rate for an annual rate given in percent.

    ``Decimal("8")`` with monthly repayments gives ``0.08 / 12`` per period.
    """
    if interest_rate is None or interest_rate < 0:
        raise InvalidInputError("Interest rate must be zero or positive", field="interest_rate")
    try:
        periods_per_year = PERIODS_PER_YEAR[repayment_frequency]
    except (KeyError, TypeError) as exc:
        raise InvalidInputError(
            f"Unsupported repayment frequency: {repayment_frequency}", field="repayment_frequency"
        ) from exc
    periodic_rate = (Decimal(interest_rate) / Decimal(100)) / Decimal(periods_per_year)
    return PeriodicRate(periods_per_year=periods_per_year, periodic_rate=periodic_rate)
