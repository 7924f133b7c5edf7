"""What-if comparisons across instalment counts and balloon percentages.

Every pairing of a candidate instalment count with a candidate balloon
percentage is priced from scratch as one scenario. Scenarios share no state,
so they run on a thread pool. The resulting matrix is then read two ways:
one group per instalment count holding the loans across balloon percentages,
and one group per balloon percentage holding the loans across instalment
counts. Groups and their entries are ordered ascending whatever order the
workers finish in. A scenario that fails validation is recorded as skipped in
both groups it belongs to instead of aborting the comparison.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from decimal import Decimal, localcontext
from functools import partial
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .balloon import resolve_balloon
from .data_models import (
    BalloonType,
    ComparisonAxis,
    ComparisonContext,
    ComparisonEntry,
    ComparisonGroup,
    DerivedLoan,
    LoanInputs,
    ScheduleResult,
    SkippedScenario,
)
from .errors import InvalidInputError, LoanCalcError
from .loan import price_loan
from .utils import FINANCIAL_CONTEXT, decimal_from_str

logger = logging.getLogger(__name__)

Candidate = Union[int, Decimal]
Scenario = Tuple[int, Decimal]
Outcome = Union[Tuple[DerivedLoan, ScheduleResult], LoanCalcError]
ComparisonGroups = Tuple[ComparisonGroup, ...]


def instalment_candidates_from(values: Iterable[int]) -> Tuple[int, ...]:
    """Return the distinct instalment candidates in ascending order.

    Counts below one are kept so they are reported as skipped scenarios;
    anything that is not a whole number is rejected outright.
    """
    parsed = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(
                f"Instalment comparison candidate {value!r} is not a whole number", field="instalment_candidates"
            )
        parsed.append(value)
    return tuple(sorted(set(parsed)))


def balloon_candidates_from(values: Iterable[Union[str, int, Decimal]]) -> Tuple[Decimal, ...]:
    """Return the distinct balloon percentage candidates in ascending order."""
    parsed = []
    for value in values:
        percentage = decimal_from_str(value, field="balloon_percentage_candidates")
        if percentage is None:
            raise InvalidInputError(
                "Balloon percentage comparison candidates cannot be blank", field="balloon_percentage_candidates"
            )
        parsed.append(percentage)
    return tuple(sorted(set(parsed)))


def comparison_balloon_type(inputs: LoanInputs) -> BalloonType:
    """Percentage base used by the balloon axis: the active one, else the loan amount."""
    if inputs.balloon_type.is_percentage:
        return inputs.balloon_type
    return BalloonType.PERCENT_OF_LOAN_AMOUNT


def _term_context(inputs: LoanInputs, loan: DerivedLoan, number_of_instalments: int) -> ComparisonContext:
    return ComparisonContext(
        purchase_price=inputs.purchase_price,
        deposit=inputs.deposit,
        loan_amount=loan.loan_amount,
        net_amount_financed=loan.net_amount_financed,
        number_of_instalments=number_of_instalments,
        balloon_type=inputs.balloon_type,
        balloon_value_percentage=inputs.balloon_value_percentage if inputs.balloon_type.is_percentage else None,
        balloon_amount=loan.balloon_amount,
    )


def _balloon_context(
    inputs: LoanInputs, loan: DerivedLoan, balloon_type: BalloonType, percentage: Decimal
) -> ComparisonContext:
    try:
        with localcontext(FINANCIAL_CONTEXT):
            balloon_amount = resolve_balloon(balloon_type, None, percentage, loan.loan_amount, loan.net_amount_financed)
    except LoanCalcError:
        balloon_amount = None
    return ComparisonContext(
        purchase_price=inputs.purchase_price,
        deposit=inputs.deposit,
        loan_amount=loan.loan_amount,
        net_amount_financed=loan.net_amount_financed,
        number_of_instalments=inputs.number_of_instalments,
        balloon_type=balloon_type,
        balloon_value_percentage=percentage,
        balloon_amount=balloon_amount,
    )


def _price_scenarios(scenarios: Dict[Scenario, LoanInputs], max_workers: int) -> Dict[Scenario, Outcome]:
    """Price every scenario, keeping validation failures as outcomes."""
    outcomes: Dict[Scenario, Outcome] = {}

    def settle(key: Scenario, outcome) -> None:
        try:
            outcomes[key] = outcome()
        except LoanCalcError as exc:
            logger.warning("Skipping %s instalments at %s%% balloon: %s", key[0], key[1], exc.message)
            outcomes[key] = exc

    ordered = sorted(scenarios)
    if max_workers <= 1 or len(ordered) <= 1:
        for key in ordered:
            settle(key, partial(price_loan, scenarios[key]))
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(ordered))) as pool:
            futures: Dict[Scenario, Future] = {key: pool.submit(price_loan, scenarios[key]) for key in ordered}
            for key in ordered:
                settle(key, futures[key].result)
    return outcomes


def _build_group(
    axis: ComparisonAxis,
    context: ComparisonContext,
    cells: Iterable[Tuple[Candidate, LoanInputs, Outcome]],
) -> ComparisonGroup:
    entries: List[ComparisonEntry] = []
    skipped: List[SkippedScenario] = []
    for candidate, scenario, outcome in cells:
        if isinstance(outcome, LoanCalcError):
            skipped.append(SkippedScenario(candidate=candidate, reason=outcome.message, error_type=outcome.kind))
            continue
        loan, schedule = outcome
        entries.append(
            ComparisonEntry(
                candidate=candidate,
                number_of_instalments=scenario.number_of_instalments,
                balloon_value_percentage=scenario.balloon_value_percentage,
                loan=loan,
                schedule=schedule,
            )
        )
    return ComparisonGroup(axis=axis, context=context, entries=tuple(entries), skipped=tuple(skipped))


def compare_loan(
    inputs: LoanInputs,
    loan: DerivedLoan,
    instalment_candidates: Iterable[int],
    balloon_candidates: Iterable[Union[str, int, Decimal]],
    max_workers: int = 1,
    balloon_type: Optional[BalloonType] = None,
) -> Tuple[ComparisonGroups, ComparisonGroups]:
    """Price the loan for every instalment count and balloon percentage pairing.

    Each scenario substitutes both parameters into ``inputs`` and holds the
    rest fixed. The balloon is always given as a percentage of the base
    returned by ``comparison_balloon_type`` unless ``balloon_type`` is
    supplied.

    Returns
    -------
    tuple
        ``(by_number_of_instalments, by_balloon_percentage)``. The first has
        one group per instalment count whose entries vary the balloon
        percentage; the second has one group per balloon percentage whose
        entries vary the instalment count.

    Raises
    ------
    InvalidInputError
        When a candidate is blank or not a number.
    """
    terms = instalment_candidates_from(instalment_candidates)
    percentages = balloon_candidates_from(balloon_candidates)
    balloon_type = balloon_type or comparison_balloon_type(inputs)

    scenarios = {
        (n, p): replace(
            inputs,
            number_of_instalments=n,
            balloon_type=balloon_type,
            balloon_value_value=None,
            balloon_value_percentage=p,
        )
        for n in terms
        for p in percentages
    }
    outcomes = _price_scenarios(scenarios, max_workers)

    by_term = tuple(
        _build_group(
            ComparisonAxis.NUMBER_OF_INSTALMENTS,
            _term_context(inputs, loan, n),
            ((p, scenarios[n, p], outcomes[n, p]) for p in percentages),
        )
        for n in terms
    )
    by_balloon = tuple(
        _build_group(
            ComparisonAxis.BALLOON_VALUE_PERCENTAGE,
            _balloon_context(inputs, loan, balloon_type, p),
            ((n, scenarios[n, p], outcomes[n, p]) for n in terms),
        )
        for p in percentages
    )
    return by_term, by_balloon
