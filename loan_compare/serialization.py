"""Conversion between facade structures and JSON-ready dictionaries.

``inputs_from_dict`` accepts the loan form's payload: camelCase keys such as
``purchasePrice`` or ``gstRecoupInstalment`` and the form's option labels
(``"Percentage (By Loan Amount)"``). snake_case keys and enum member names
are accepted too. ``result_to_dict`` produces the structure the form and the
document generator read back.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from .data_models import (
    BalloonType,
    ComparisonGroup,
    ComparisonEntry,
    DerivedLoan,
    Instalment,
    LoanCalculationResult,
    LoanInputs,
    RepaymentFrequency,
    RepaymentStructure,
    ScheduleResult,
)
from .errors import InvalidInputError
from .utils import decimal_from_str, parse_date

E = TypeVar("E", bound=Enum)

_KEY_ALIASES = {
    "gstRecoupInstalment": "gst_recoup_instalment_index",
    "gst_recoup_instalment": "gst_recoup_instalment_index",
}

_CURRENCY_FIELDS = (
    "purchase_price",
    "deposit",
    "interest_rate",
    "lender_fee",
    "other_fees_charges",
    "balloon_value_value",
    "balloon_value_percentage",
    "gst_amount",
    "account_keeping_fee",
)
_FLAG_FIELDS = ("lender_fee_financed", "other_fees_charges_financed", "gst_recoup")


def _snake_case(key: str) -> str:
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
    return _KEY_ALIASES.get(key, _KEY_ALIASES.get(snake, snake))


def _normalise_token(value: str) -> str:
    return re.sub(r"[^a-z]", "", value.lower())


def parse_enum(enum_cls: Type[E], value: Any, field: str, default: Optional[E] = None) -> E:
    """Look up an enum member by value (form label) or by name, ignoring case and punctuation."""
    if isinstance(value, enum_cls):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise InvalidInputError(f"{field} is required", field=field)
    token = _normalise_token(str(value))
    for member in enum_cls:
        if token in (_normalise_token(member.value), _normalise_token(member.name)):
            return member
    raise InvalidInputError(f"Unsupported {field}: {value}", field=field)


def _parse_int(value: Any, field: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be an integer", field=field)
    number = decimal_from_str(value, field=field)
    if number != number.to_integral_value():
        raise InvalidInputError(f"{field} must be an integer", field=field)
    return int(number)


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def inputs_from_dict(data: Mapping[str, Any]) -> LoanInputs:
    """Build ``LoanInputs`` from a form or JSON payload.

    Output-only keys sent back by the form (``loanAmount``,
    ``scheduleRepayment``, ``instalments``...) are ignored.
    """
    values = {_snake_case(k): v for k, v in data.items()}
    parsed: Dict[str, Any] = {}
    for name in _CURRENCY_FIELDS:
        parsed[name] = decimal_from_str(values.get(name), field=name)
    for name in _FLAG_FIELDS:
        parsed[name] = _parse_flag(values.get(name, False))

    for name in ("purchase_price", "interest_rate"):
        if parsed[name] is None:
            raise InvalidInputError(f"{name} is required", field=name)
    for name in ("deposit", "lender_fee", "account_keeping_fee"):
        if parsed[name] is None:
            parsed[name] = Decimal("0")

    number_of_instalments = _parse_int(values.get("number_of_instalments"), "number_of_instalments")
    if number_of_instalments is None:
        raise InvalidInputError("number_of_instalments is required", field="number_of_instalments")
    start = values.get("loan_start_date")
    if not start:
        raise InvalidInputError("loan_start_date is required", field="loan_start_date")

    return LoanInputs(
        loan_start_date=parse_date(start, field="loan_start_date"),
        number_of_instalments=number_of_instalments,
        repayment_structure=parse_enum(
            RepaymentStructure, values.get("repayment_structure"), "repayment_structure", RepaymentStructure.ADVANCE
        ),
        repayment_frequency=parse_enum(
            RepaymentFrequency, values.get("repayment_frequency"), "repayment_frequency", RepaymentFrequency.MONTHLY
        ),
        balloon_type=parse_enum(BalloonType, values.get("balloon_type"), "balloon_type", BalloonType.NONE),
        gst_recoup_instalment_index=_parse_int(
            values.get("gst_recoup_instalment_index"), "gst_recoup_instalment_index"
        ),
        **parsed,
    )


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def _day(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


def inputs_to_dict(inputs: LoanInputs) -> Dict[str, Any]:
    return {
        "purchasePrice": _money(inputs.purchase_price),
        "deposit": _money(inputs.deposit),
        "lenderFee": _money(inputs.lender_fee),
        "lenderFeeFinanced": inputs.lender_fee_financed,
        "otherFeesCharges": _money(inputs.other_fees_charges),
        "otherFeesChargesFinanced": inputs.other_fees_charges_financed,
        "balloonType": None if inputs.balloon_type is BalloonType.NONE else inputs.balloon_type.value,
        "balloonValueValue": _money(inputs.balloon_value_value),
        "balloonValuePercentage": _money(inputs.balloon_value_percentage),
        "gstRecoup": inputs.gst_recoup,
        "gstAmount": _money(inputs.gst_amount),
        "gstRecoupInstalment": inputs.gst_recoup_instalment_index,
        "accountKeepingFee": _money(inputs.account_keeping_fee),
        "repaymentStructure": inputs.repayment_structure.value,
        "repaymentFrequency": inputs.repayment_frequency.value,
        "numberOfInstalments": inputs.number_of_instalments,
        "loanStartDate": _day(inputs.loan_start_date),
        "interestRate": _money(inputs.interest_rate),
    }


def instalment_to_dict(instalment: Instalment) -> Dict[str, Any]:
    return {
        "instalmentNo": instalment.instalment_no,
        "instalmentDate": _day(instalment.instalment_date),
        "openingBalance": _money(instalment.opening_balance),
        "additionalRepayments": _money(instalment.additional_repayments),
        "repayment": _money(instalment.repayment),
        "interest": _money(instalment.interest),
        "principle": _money(instalment.principal),
        "closingBalance": _money(instalment.closing_balance),
    }


def _loan_fields(loan: DerivedLoan, schedule: ScheduleResult) -> Dict[str, Any]:
    return {
        "loanAmount": _money(loan.loan_amount),
        "amountFinancedLenderFee": _money(loan.amount_financed_lender_fee),
        "netAmountFinanced": _money(loan.net_amount_financed),
        "balloonAmount": _money(loan.balloon_amount),
        "periodsPerYear": loan.periods_per_year,
        "periodicRate": float(loan.periodic_rate),
        "scheduleRepayment": _money(schedule.schedule_repayment),
        "totalInterestCharges": _money(schedule.total_interest_charges),
        "totalAmountToBePaid": _money(schedule.total_amount_to_be_paid),
        "totalAccountKeepingFees": _money(schedule.total_account_keeping_fees),
        "firstRepaymentDueDate": _day(schedule.first_repayment_due_date),
        "loanEndDate": _day(schedule.loan_end_date),
    }


def _entry_to_dict(entry: ComparisonEntry) -> Dict[str, Any]:
    payload = {
        "numberOfInstalments": entry.number_of_instalments,
        "balloonValuePercentage": _money(entry.balloon_value_percentage),
    }
    payload.update(_loan_fields(entry.loan, entry.schedule))
    return payload


def _candidate(value: Union[int, Decimal]) -> Union[int, float]:
    return value if isinstance(value, int) else float(value)


def group_to_dict(group: ComparisonGroup) -> Dict[str, Any]:
    context = group.context
    return {
        "axis": group.axis.value,
        "loan": {
            "purchasePrice": _money(context.purchase_price),
            "deposit": _money(context.deposit),
            "loanAmount": _money(context.loan_amount),
            "netAmountFinanced": _money(context.net_amount_financed),
            "numberOfInstalments": context.number_of_instalments,
            "balloonType": None if context.balloon_type is BalloonType.NONE else context.balloon_type.value,
            "balloonValuePercentage": _money(context.balloon_value_percentage),
            "balloonAmount": _money(context.balloon_amount),
        },
        "loans": [_entry_to_dict(e) for e in group.entries],
        "skipped": [
            {"candidate": _candidate(s.candidate), "type": s.error_type, "reason": s.reason}
            for s in group.skipped
        ],
    }


def result_to_dict(result: LoanCalculationResult) -> Dict[str, Any]:
    """Serialise a facade result into the payload consumed by the form."""
    loan_details = inputs_to_dict(result.inputs)
    loan_details.update(_loan_fields(result.loan, result.schedule))
    instalments: List[Dict[str, Any]] = [instalment_to_dict(i) for i in result.schedule.instalments]
    loan_details["instalments"] = instalments
    return {
        "loanDetails": loan_details,
        "loansByComparisonNumberOfInstalments": [group_to_dict(g) for g in result.by_number_of_instalments],
        "loansByComparisonBalloonAmountPercentage": [group_to_dict(g) for g in result.by_balloon_percentage],
    }
