"""Core calculation engine for the loan comparison engine.

This module builds the instalment-by-instalment repayment schedule for a
fixed-rate loan. It supports a balloon payment with the final instalment,
repayments in advance or in arrears and a one-off GST recoup paid with a
chosen instalment. Every currency figure is rounded to the cent as the
schedule is walked, and whatever the level repayment leaves over or short
is absorbed into the final instalment's additional repayments so the loan
closes at exactly zero.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, localcontext
from typing import List, Optional

from .data_models import Instalment, RepaymentFrequency, RepaymentStructure, ScheduleResult, ZERO
from .errors import InvalidInputError, ScheduleArithmeticError
from .utils import FINANCIAL_CONTEXT, add_periods, round_currency

logger = logging.getLogger(__name__)


def calculate_repayment(
    principal: Decimal,
    periodic_rate: Decimal,
    number_of_instalments: int,
    balloon_amount: Decimal = ZERO,
    repayment_structure: RepaymentStructure = RepaymentStructure.ARREARS,
) -> Decimal:
    """Return the unrounded level repayment that amortizes ``principal``.

    For repayments in arrears (an ordinary annuity) the formula is:

        R = (P - B * (1 + r)^-n) * r / (1 - (1 + r)^-n)

    where ``B`` is the balloon due with instalment ``n``. Repayments in
    advance deduct each repayment before the period's interest accrues,
    which gives ``R / (1 + r)``. When the rate is zero the repayment is
    simply ``(P - B) / n``.
    """
    if isinstance(number_of_instalments, bool) or not isinstance(number_of_instalments, int):
        raise InvalidInputError("Number of instalments must be an integer", field="number_of_instalments")
    if number_of_instalments < 1:
        raise InvalidInputError("Number of instalments must be at least 1", field="number_of_instalments")
    if periodic_rate is None or not Decimal(periodic_rate).is_finite() or periodic_rate < 0:
        raise InvalidInputError("Periodic rate must be zero or positive", field="interest_rate")

    n = number_of_instalments
    with localcontext(FINANCIAL_CONTEXT):
        if periodic_rate == 0:
            amortized = principal - balloon_amount
            if amortized <= 0:
                raise ScheduleArithmeticError("Balloon covers the whole principal; no repayment is left to schedule")
            return amortized / Decimal(n)

        growth = 1 + periodic_rate
        discount = growth ** -n
        present_value = principal - balloon_amount * discount
        if present_value <= 0:
            raise ScheduleArithmeticError(
                f"Discounted balloon ({balloon_amount * discount:.2f}) exceeds the principal ({principal:.2f})"
            )

        repayment = present_value * periodic_rate / (1 - discount)
        if repayment_structure is RepaymentStructure.ADVANCE:
            repayment = repayment / growth
    if not repayment.is_finite():
        raise InvalidInputError("Repayment could not be calculated for these parameters")
    return repayment


def generate_schedule(
    principal: Decimal,
    periodic_rate: Decimal,
    number_of_instalments: int,
    balloon_amount: Decimal,
    repayment_structure: RepaymentStructure,
    loan_start_date: date,
    repayment_frequency: RepaymentFrequency,
    gst_amount: Optional[Decimal] = None,
    gst_recoup_instalment_index: Optional[int] = None,
    account_keeping_fee: Decimal = ZERO,
) -> ScheduleResult:
    """Compute the full repayment schedule for a loan.

    Parameters
    ----------
    principal: Decimal
        The balance financed on ``loan_start_date``.
    periodic_rate: Decimal
        Interest rate per repayment period as a fraction (not percent).
    balloon_amount: Decimal
        Lump sum paid with the last instalment; zero for none.
    gst_amount, gst_recoup_instalment_index: optional
        A one-off additional repayment made with the given 1-based
        instalment. Both must be supplied for the recoup to apply. The
        recoup sits outside the level repayment: it lowers the balance once
        and the amount it over-recovers comes back as a negative adjustment
        on the final instalment.
    account_keeping_fee: Decimal
        Flat fee charged with every instalment. It is reported separately
        and does not enter the balance.

    Returns
    -------
    ScheduleResult
        The rounded level repayment, totals and the ordered instalments.
        ``total_amount_to_be_paid`` is principal and interest: all regular
        repayments plus all additional repayments.
    """
    if gst_amount is None or gst_recoup_instalment_index is None:
        gst_amount = ZERO
        gst_recoup_instalment_index = None
    elif not 1 <= gst_recoup_instalment_index <= number_of_instalments:
        raise InvalidInputError(
            f"GST recoup instalment must be between 1 and {number_of_instalments}",
            field="gst_recoup_instalment_index",
        )

    with localcontext(FINANCIAL_CONTEXT):
        return _walk_schedule(
            principal,
            periodic_rate,
            number_of_instalments,
            balloon_amount,
            repayment_structure,
            loan_start_date,
            repayment_frequency,
            gst_amount,
            gst_recoup_instalment_index,
            account_keeping_fee,
        )


def _walk_schedule(
    principal: Decimal,
    periodic_rate: Decimal,
    number_of_instalments: int,
    balloon_amount: Decimal,
    repayment_structure: RepaymentStructure,
    loan_start_date: date,
    repayment_frequency: RepaymentFrequency,
    gst_amount: Decimal,
    gst_recoup_instalment_index: Optional[int],
    account_keeping_fee: Decimal,
) -> ScheduleResult:
    repayment = round_currency(
        calculate_repayment(principal, periodic_rate, number_of_instalments, balloon_amount, repayment_structure)
    )
    in_advance = repayment_structure is RepaymentStructure.ADVANCE
    logger.debug(
        "Scheduling %s instalments of %s at %s per period (%s)",
        number_of_instalments,
        repayment,
        periodic_rate,
        repayment_structure.value,
    )

    instalments: List[Instalment] = []
    total_interest = ZERO
    total_additional = ZERO

    balance = round_currency(principal)
    for instalment_no in range(1, number_of_instalments + 1):
        opening_balance = balance
        if in_advance:
            # Repayment comes off first; interest accrues on what is left.
            interest = round_currency((opening_balance - repayment) * periodic_rate)
        else:
            interest = round_currency(opening_balance * periodic_rate)
        principal_paid = repayment - interest

        additional = ZERO
        if instalment_no == gst_recoup_instalment_index:
            additional += gst_amount
        if instalment_no == number_of_instalments:
            additional += balloon_amount

        closing_balance = opening_balance - principal_paid - additional
        if instalment_no == number_of_instalments:
            additional += closing_balance
            closing_balance = ZERO

        instalments.append(
            Instalment(
                instalment_no=instalment_no,
                instalment_date=add_periods(loan_start_date, repayment_frequency, instalment_no),
                opening_balance=opening_balance,
                additional_repayments=additional,
                repayment=repayment,
                interest=interest,
                principal=principal_paid,
                closing_balance=closing_balance,
            )
        )
        total_interest += interest
        total_additional += additional
        balance = closing_balance

    residual = instalments[-1].additional_repayments - balloon_amount
    if instalment_no == gst_recoup_instalment_index:
        residual -= gst_amount
    if gst_recoup_instalment_index is not None:
        logger.debug("GST recoup returned %s on the final instalment", residual)
    elif abs(residual) > Decimal("1.00"):
        logger.warning("Large rounding residual %s absorbed into the final instalment", residual)

    return ScheduleResult(
        schedule_repayment=repayment,
        total_interest_charges=total_interest,
        total_amount_to_be_paid=repayment * number_of_instalments + total_additional,
        total_account_keeping_fees=round_currency(account_keeping_fee or ZERO) * number_of_instalments,
        instalments=tuple(instalments),
    )
