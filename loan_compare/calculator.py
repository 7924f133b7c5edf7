"""Single entry point used by the loan form and document generator.

``calculate_loan`` prices the primary loan and the comparison matrix and
returns them together. A failure on the primary loan aborts the whole call;
failing comparison scenarios are reported inside their groups.
"""

from __future__ import annotations

import logging
from typing import Optional

from .comparison import compare_loan
from .config import EngineSettings
from .data_models import LoanCalculationResult, LoanInputs
from .loan import price_loan

logger = logging.getLogger(__name__)


def calculate_loan(inputs: LoanInputs, settings: Optional[EngineSettings] = None) -> LoanCalculationResult:
    """Compute the primary schedule and both comparison group collections.

    Raises
    ------
    InvalidInputError
        When ``inputs`` are malformed, missing or contradictory, or a
        configured comparison candidate is not a number.
    ScheduleArithmeticError
        When the inputs describe a schedule that cannot amortize.
    """
    settings = settings or EngineSettings()
    loan, schedule = price_loan(inputs)

    by_instalments, by_balloon = compare_loan(
        inputs,
        loan,
        settings.instalment_candidates,
        settings.balloon_percentage_candidates,
        max_workers=settings.max_workers,
    )
    logger.info(
        "Calculated %s instalments of %s; %d term and %d balloon comparison groups (%d scenarios skipped)",
        inputs.number_of_instalments,
        schedule.schedule_repayment,
        len(by_instalments),
        len(by_balloon),
        sum(len(group.skipped) for group in by_instalments),
    )
    return LoanCalculationResult(
        inputs=inputs,
        loan=loan,
        schedule=schedule,
        by_number_of_instalments=by_instalments,
        by_balloon_percentage=by_balloon,
    )
