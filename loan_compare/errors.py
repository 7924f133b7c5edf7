"""Exceptions raised by the loan comparison engine."""

from __future__ import annotations

from typing import Optional


class LoanCalcError(Exception):
    """Base class for calculation failures surfaced to callers."""

    kind = "LoanCalcError"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"type": self.kind, "field": self.field, "message": self.message}


class InvalidInputError(LoanCalcError, ValueError):
    """Malformed, missing or contradictory loan parameters."""

    kind = "InvalidInput"


class ScheduleArithmeticError(LoanCalcError, ArithmeticError):
    """The parameters describe a schedule that cannot amortize."""

    kind = "ArithmeticError"
