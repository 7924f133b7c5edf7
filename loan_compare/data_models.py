"""Data models for the loan comparison engine.

This module defines the enumerations and dataclasses passed between the
engine components: the raw loan inputs captured by the form, the derived loan
amounts, individual instalments, full schedules and the two comparison
groupings. Every dataclass is frozen; a calculation builds fresh values and
never mutates them afterwards, so results can be shared between threads.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union


class BalloonType(str, Enum):
    """How the balloon payment due with the last instalment is specified.

    Values are the labels used by the loan form.
    """

    NONE = "None"
    VALUE = "Value"
    PERCENT_OF_LOAN_AMOUNT = "Percentage (By Loan Amount)"
    PERCENT_OF_NET_AMOUNT_FINANCED = "Percentage (By Net Amount Financed)"

    @property
    def is_percentage(self) -> bool:
        return self in (BalloonType.PERCENT_OF_LOAN_AMOUNT, BalloonType.PERCENT_OF_NET_AMOUNT_FINANCED)


class RepaymentStructure(str, Enum):
    """Timing convention: ``ADVANCE`` pays before interest accrues, ``ARREARS`` after."""

    ADVANCE = "Advance"
    ARREARS = "Arrears"


class RepaymentFrequency(str, Enum):
    MONTHLY = "Monthly"
    FORTNIGHTLY = "Fortnightly"
    WEEKLY = "Weekly"


class ComparisonAxis(str, Enum):
    NUMBER_OF_INSTALMENTS = "numberOfInstalments"
    BALLOON_VALUE_PERCENTAGE = "balloonValuePercentage"


ZERO = Decimal("0")


@dataclass(frozen=True)
class LoanInputs:
    """Parameters of a single loan calculation.

    Attributes
    ----------
    purchase_price, deposit: Decimal
        The loan amount is the purchase price less the deposit (or trade in).
    interest_rate: Decimal
        Annual nominal rate in percent, e.g. ``Decimal("8")`` for 8 %.
    number_of_instalments: int
        Number of scheduled repayments.
    balloon_value_value, balloon_value_percentage: Optional[Decimal]
        Only the one selected by ``balloon_type`` is read.
    gst_recoup_instalment_index: Optional[int]
        1-based instalment at which ``gst_amount`` is repaid when
        ``gst_recoup`` is set.
    """

    purchase_price: Decimal
    deposit: Decimal
    interest_rate: Decimal
    number_of_instalments: int
    loan_start_date: date
    repayment_structure: RepaymentStructure = RepaymentStructure.ADVANCE
    repayment_frequency: RepaymentFrequency = RepaymentFrequency.MONTHLY
    lender_fee: Decimal = ZERO
    lender_fee_financed: bool = False
    other_fees_charges: Optional[Decimal] = None
    other_fees_charges_financed: bool = False
    balloon_type: BalloonType = BalloonType.NONE
    balloon_value_value: Optional[Decimal] = None
    balloon_value_percentage: Optional[Decimal] = None
    gst_recoup: bool = False
    gst_amount: Optional[Decimal] = None
    gst_recoup_instalment_index: Optional[int] = None
    account_keeping_fee: Decimal = ZERO


@dataclass(frozen=True)
class PeriodicRate:
    """Output of the rate converter."""

    periods_per_year: int
    periodic_rate: Decimal


@dataclass(frozen=True)
class DerivedLoan:
    """Amounts derived from ``LoanInputs`` before the schedule is built.

    ``net_amount_financed`` is the loan amount plus any fees the borrower
    chose to finance; it is the balance the schedule amortizes.
    """

    loan_amount: Decimal
    amount_financed_lender_fee: Decimal
    amount_financed_other_fees: Decimal
    net_amount_financed: Decimal
    balloon_amount: Decimal
    periods_per_year: int
    periodic_rate: Decimal


@dataclass(frozen=True)
class Instalment:
    """One row of the repayment schedule.

    ``additional_repayments`` holds any GST recoup or balloon paid with this
    instalment (plus the rounding residual on the last one), so that
    ``closing_balance == opening_balance - principal - additional_repayments``.
    """

    instalment_no: int
    instalment_date: date
    opening_balance: Decimal
    additional_repayments: Decimal
    repayment: Decimal
    interest: Decimal
    principal: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class ScheduleResult:
    schedule_repayment: Decimal
    total_interest_charges: Decimal
    total_amount_to_be_paid: Decimal
    total_account_keeping_fees: Decimal
    instalments: Tuple[Instalment, ...]

    @property
    def first_repayment_due_date(self) -> date:
        return self.instalments[0].instalment_date

    @property
    def loan_end_date(self) -> date:
        return self.instalments[-1].instalment_date


@dataclass(frozen=True)
class ComparisonEntry:
    """One cell of the comparison matrix.

    ``candidate`` is the parameter that varies inside the owning group: the
    balloon percentage in an instalment-count group, the instalment count in
    a balloon-percentage group.
    """

    candidate: Union[int, Decimal]
    number_of_instalments: int
    balloon_value_percentage: Optional[Decimal]
    loan: DerivedLoan
    schedule: ScheduleResult


@dataclass(frozen=True)
class SkippedScenario:
    """A comparison scenario that failed validation and was left out of its group."""

    candidate: Union[int, Decimal]
    reason: str
    error_type: str


@dataclass(frozen=True)
class ComparisonContext:
    """Loan context shared by every entry of a comparison group.

    ``balloon_amount`` is ``None`` when the group's balloon percentage
    cannot be resolved; every entry of that group is then skipped.
    """

    purchase_price: Decimal
    deposit: Decimal
    loan_amount: Decimal
    net_amount_financed: Decimal
    number_of_instalments: int
    balloon_type: BalloonType
    balloon_value_percentage: Optional[Decimal]
    balloon_amount: Optional[Decimal]


@dataclass(frozen=True)
class ComparisonGroup:
    """Scenarios sharing the value of ``axis``, ordered by the other parameter."""

    axis: ComparisonAxis
    context: ComparisonContext
    entries: Tuple[ComparisonEntry, ...] = field(default_factory=tuple)
    skipped: Tuple[SkippedScenario, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LoanCalculationResult:
    """Everything the facade returns for one set of ``LoanInputs``."""

    inputs: LoanInputs
    loan: DerivedLoan
    schedule: ScheduleResult
    by_number_of_instalments: Tuple[ComparisonGroup, ...] = field(default_factory=tuple)
    by_balloon_percentage: Tuple[ComparisonGroup, ...] = field(default_factory=tuple)
