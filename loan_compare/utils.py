"""Utility functions for the loan comparison engine.

This module provides helpers for parsing user input into Python data types,
rounding currency figures and stepping dates forward by repayment periods.
Monthly steps use calendar arithmetic (clamping to the last day of shorter
months); fortnightly and weekly steps are fixed day counts.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Optional, Union

from .data_models import RepaymentFrequency
from .errors import InvalidInputError

CENT = Decimal("0.01")

# Working precision for schedule arithmetic, entered per call so pool threads
# do not depend on their own default context.
FINANCIAL_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)

_PERIOD_DAYS = {
    RepaymentFrequency.FORTNIGHTLY: 14,
    RepaymentFrequency.WEEKLY: 7,
}


def round_currency(value: Decimal) -> Decimal:
    """Round a currency amount to whole cents, halves away from zero."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    # no negative zero
    return rounded if rounded else rounded.copy_abs()


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_periods(dt: date, frequency: RepaymentFrequency, periods: int) -> date:
    """Return ``dt`` advanced by ``periods`` repayment periods.

    Each call works from the original date rather than chaining single steps,
    so a schedule starting on the 31st keeps returning to month ends.
    """
    if frequency is RepaymentFrequency.MONTHLY:
        return add_months(dt, periods)
    return dt + timedelta(days=_PERIOD_DAYS[frequency] * periods)


def decimal_from_str(value: Union[str, int, float, Decimal, None], field: Optional[str] = None) -> Optional[Decimal]:
    """Convert a numeric value into a ``Decimal``.

    Strings may contain thousands separators. ``None`` and blank strings
    return ``None``. Floats go through ``str`` so ``0.1`` stays ``0.1``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid numeric value: {value}", field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        cleaned = str(value).replace(",", "").strip()
        if not cleaned:
            return None
        try:
            result = Decimal(cleaned)
        except InvalidOperation as exc:
            raise InvalidInputError(f"Invalid numeric value: {value}", field=field) from exc
    if not result.is_finite():
        raise InvalidInputError(f"Invalid numeric value: {value}", field=field)
    return result


def parse_date(value: Union[str, date], field: Optional[str] = None) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date``; dates pass through."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date: {value}", field=field) from exc
