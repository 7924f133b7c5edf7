"""Validation and pricing of a single loan.

``price_loan`` runs one set of ``LoanInputs`` through the rate converter,
the balloon resolver and the schedule generator. The facade calls it for the
primary loan and the comparison engine calls it once per scenario.
"""

from __future__ import annotations

import logging
from decimal import Decimal, localcontext
from typing import Tuple

from .balloon import resolve_balloon
from .data_models import (
    BalloonType,
    DerivedLoan,
    LoanInputs,
    RepaymentFrequency,
    RepaymentStructure,
    ScheduleResult,
    ZERO,
)
from .engine import generate_schedule
from .errors import InvalidInputError
from .rates import convert_rate
from .utils import FINANCIAL_CONTEXT

logger = logging.getLogger(__name__)


def _require_non_negative(value, field: str) -> None:
    if value is not None and value < 0:
        raise InvalidInputError(f"{field} cannot be negative", field=field)


def validate_inputs(inputs: LoanInputs) -> None:
    """Raise ``InvalidInputError`` for malformed or contradictory inputs."""
    if not isinstance(inputs.repayment_structure, RepaymentStructure):
        raise InvalidInputError(
            f"Unsupported repayment structure: {inputs.repayment_structure}", field="repayment_structure"
        )
    if not isinstance(inputs.repayment_frequency, RepaymentFrequency):
        raise InvalidInputError(
            f"Unsupported repayment frequency: {inputs.repayment_frequency}", field="repayment_frequency"
        )
    if not isinstance(inputs.balloon_type, BalloonType):
        raise InvalidInputError(f"Unsupported balloon type: {inputs.balloon_type}", field="balloon_type")

    n = inputs.number_of_instalments
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise InvalidInputError("Number of instalments must be a positive integer", field="number_of_instalments")
    if inputs.purchase_price is None or inputs.purchase_price <= 0:
        raise InvalidInputError("Purchase price must be positive", field="purchase_price")
    if inputs.deposit is None:
        raise InvalidInputError("Deposit is required", field="deposit")
    _require_non_negative(inputs.deposit, "deposit")
    if inputs.deposit >= inputs.purchase_price:
        raise InvalidInputError("Deposit must be less than the purchase price", field="deposit")
    if inputs.interest_rate is None:
        raise InvalidInputError("Interest rate is required", field="interest_rate")
    _require_non_negative(inputs.lender_fee, "lender_fee")
    _require_non_negative(inputs.other_fees_charges, "other_fees_charges")
    _require_non_negative(inputs.account_keeping_fee, "account_keeping_fee")
    _require_non_negative(inputs.balloon_value_value, "balloon_value_value")
    _require_non_negative(inputs.balloon_value_percentage, "balloon_value_percentage")

    if inputs.gst_recoup:
        if inputs.gst_amount is None or inputs.gst_amount <= 0:
            raise InvalidInputError("GST amount must be positive when recouping GST", field="gst_amount")
        index = inputs.gst_recoup_instalment_index
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidInputError(
                "GST recoup instalment is required when recouping GST", field="gst_recoup_instalment_index"
            )
        if not 1 <= index <= n:
            raise InvalidInputError(
                f"GST recoup instalment must be between 1 and {n}", field="gst_recoup_instalment_index"
            )


def derive_loan(inputs: LoanInputs) -> DerivedLoan:
    """Work out the loan amount, financed fees and balloon for ``inputs``."""
    loan_amount = Decimal(inputs.purchase_price) - Decimal(inputs.deposit)
    lender_fee = Decimal(inputs.lender_fee or ZERO) if inputs.lender_fee_financed else ZERO
    other_fees = Decimal(inputs.other_fees_charges or ZERO) if inputs.other_fees_charges_financed else ZERO
    net_amount_financed = loan_amount + lender_fee + other_fees

    rate = convert_rate(inputs.interest_rate, inputs.repayment_frequency)
    balloon_amount = resolve_balloon(
        inputs.balloon_type,
        inputs.balloon_value_value,
        inputs.balloon_value_percentage,
        loan_amount,
        net_amount_financed,
    )
    logger.debug(
        "Derived loan amount %s, net amount financed %s, balloon %s",
        loan_amount,
        net_amount_financed,
        balloon_amount,
    )
    return DerivedLoan(
        loan_amount=loan_amount,
        amount_financed_lender_fee=lender_fee,
        amount_financed_other_fees=other_fees,
        net_amount_financed=net_amount_financed,
        balloon_amount=balloon_amount,
        periods_per_year=rate.periods_per_year,
        periodic_rate=rate.periodic_rate,
    )


def price_loan(inputs: LoanInputs) -> Tuple[DerivedLoan, ScheduleResult]:
    """Validate ``inputs`` and compute its derived amounts and schedule."""
    validate_inputs(inputs)
    with localcontext(FINANCIAL_CONTEXT):
        loan = derive_loan(inputs)
    schedule = generate_schedule(
        principal=loan.net_amount_financed,
        periodic_rate=loan.periodic_rate,
        number_of_instalments=inputs.number_of_instalments,
        balloon_amount=loan.balloon_amount,
        repayment_structure=inputs.repayment_structure,
        loan_start_date=inputs.loan_start_date,
        repayment_frequency=inputs.repayment_frequency,
        gst_amount=inputs.gst_amount if inputs.gst_recoup else None,
        gst_recoup_instalment_index=inputs.gst_recoup_instalment_index if inputs.gst_recoup else None,
        account_keeping_fee=inputs.account_keeping_fee,
    )
    return loan, schedule
