"""Resolution of the four balloon configurations into a currency amount."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .data_models import BalloonType, ZERO
from .errors import InvalidInputError
from .utils import round_currency


def resolve_balloon(
    balloon_type: BalloonType,
    balloon_value_value: Optional[Decimal],
    balloon_value_percentage: Optional[Decimal],
    loan_amount: Decimal,
    net_amount_financed: Decimal,
) -> Decimal:
    """Return the balloon amount due with the final instalment.

    Percentage balloons are rounded to the cent. A balloon equal to or larger
    than the loan amount can never amortize and is rejected, as is a missing
    value or percentage for the selected balloon type.
    """
    if balloon_type is None or balloon_type is BalloonType.NONE:
        return ZERO
    if not isinstance(balloon_type, BalloonType):
        raise InvalidInputError(f"Unsupported balloon type: {balloon_type}", field="balloon_type")

    if balloon_type is BalloonType.VALUE:
        if balloon_value_value is None:
            raise InvalidInputError("Balloon value is required for a value balloon", field="balloon_value_value")
        amount = Decimal(balloon_value_value)
    else:
        if balloon_value_percentage is None:
            raise InvalidInputError(
                f"Balloon percentage is required for balloon type '{balloon_type.value}'",
                field="balloon_value_percentage",
            )
        if balloon_type is BalloonType.PERCENT_OF_LOAN_AMOUNT:
            base = loan_amount
        else:
            base = net_amount_financed
        amount = round_currency(Decimal(balloon_value_percentage) / Decimal(100) * base)

    if amount < 0:
        raise InvalidInputError("Balloon amount cannot be negative", field="balloon_type")
    if amount >= loan_amount:
        raise InvalidInputError(
            f"Balloon amount {amount} must be less than the loan amount {loan_amount}",
            field="balloon_type",
        )
    return amount
