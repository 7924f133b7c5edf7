"""Command-line interface for the loan comparison engine.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full repayment schedules, view summaries or
print the comparison tables across instalment counts and balloon
percentages. Results can be printed to the terminal or exported to JSON/CSV
files.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Tuple

import click

from .calculator import calculate_loan
from .config import EngineSettings, settings_from_env
from .data_models import BalloonType, LoanCalculationResult, LoanInputs, RepaymentFrequency, RepaymentStructure
from .errors import InvalidInputError, LoanCalcError
from .formatter import print_comparison, print_schedule, print_summary
from .serialization import instalment_to_dict, result_to_dict
from .utils import decimal_from_str, parse_date

BALLOON_CHOICES = {
    "none": BalloonType.NONE,
    "value": BalloonType.VALUE,
    "percent-of-loan-amount": BalloonType.PERCENT_OF_LOAN_AMOUNT,
    "percent-of-net-amount-financed": BalloonType.PERCENT_OF_NET_AMOUNT_FINANCED,
}


def parse_amount(value: Optional[str]) -> Optional[str]:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("50000") and shorthand with ``k``/``m`` suffixes
    (e.g., "50k" meaning 50_000). Returns a plain numeric string so the
    caller can build an exact ``Decimal``.
    """
    if value is None:
        return None
    value = value.strip().lower().replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000
        value = value[:-1]
    try:
        amount = decimal_from_str(value)
    except InvalidInputError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if amount is None:
        raise click.BadParameter("Amount cannot be empty")
    return str(amount * factor)


def build_inputs_from_options(
    purchase_price: str,
    deposit: Optional[str],
    rate: str,
    instalments: int,
    frequency: str,
    structure: str,
    start_date: Optional[str],
    lender_fee: Optional[str],
    finance_lender_fee: bool,
    other_fees: Optional[str],
    finance_other_fees: bool,
    balloon_type: str,
    balloon_value: Optional[str],
    balloon_percentage: Optional[str],
    gst_amount: Optional[str],
    gst_instalment: Optional[int],
    account_keeping_fee: Optional[str],
) -> LoanInputs:
    try:
        start = parse_date(start_date) if start_date else date.today()
        return LoanInputs(
            purchase_price=decimal_from_str(parse_amount(purchase_price)),
            deposit=decimal_from_str(parse_amount(deposit)) if deposit else decimal_from_str("0"),
            interest_rate=decimal_from_str(rate, field="interest_rate"),
            number_of_instalments=instalments,
            loan_start_date=start,
            repayment_structure=RepaymentStructure(structure.capitalize()),
            repayment_frequency=RepaymentFrequency(frequency.capitalize()),
            lender_fee=decimal_from_str(parse_amount(lender_fee)) if lender_fee else decimal_from_str("0"),
            lender_fee_financed=finance_lender_fee,
            other_fees_charges=decimal_from_str(parse_amount(other_fees)) if other_fees else None,
            other_fees_charges_financed=finance_other_fees,
            balloon_type=BALLOON_CHOICES[balloon_type],
            balloon_value_value=decimal_from_str(parse_amount(balloon_value)) if balloon_value else None,
            balloon_value_percentage=decimal_from_str(balloon_percentage, field="balloon_value_percentage"),
            gst_recoup=gst_amount is not None,
            gst_amount=decimal_from_str(parse_amount(gst_amount)) if gst_amount else None,
            gst_recoup_instalment_index=gst_instalment,
            account_keeping_fee=(
                decimal_from_str(parse_amount(account_keeping_fee)) if account_keeping_fee else decimal_from_str("0")
            ),
        )
    except InvalidInputError as exc:
        raise click.BadParameter(exc.message)


_LOAN_OPTIONS = [
    click.option("--purchase-price", "-p", "purchase_price", required=True, help="Purchase price, e.g. 100k"),
    click.option("--deposit", "-d", "deposit", help="Deposit or trade-in amount"),
    click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
    click.option("--instalments", "-n", "instalments", required=True, type=int, help="Number of instalments"),
    click.option(
        "--frequency",
        "frequency",
        type=click.Choice(["monthly", "fortnightly", "weekly"]),
        default="monthly",
        help="Repayment frequency",
    ),
    click.option(
        "--structure",
        "structure",
        type=click.Choice(["advance", "arrears"]),
        default="advance",
        help="Repay in advance or in arrears",
    ),
    click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM-DD), defaults to today"),
    click.option("--lender-fee", "lender_fee", help="Lender fee"),
    click.option("--finance-lender-fee", "finance_lender_fee", is_flag=True, help="Add the lender fee to the loan"),
    click.option("--other-fees", "other_fees", help="Other fees and charges"),
    click.option("--finance-other-fees", "finance_other_fees", is_flag=True, help="Add other fees to the loan"),
    click.option(
        "--balloon-type",
        "balloon_type",
        type=click.Choice(list(BALLOON_CHOICES)),
        default="none",
        help="How the balloon payment is specified",
    ),
    click.option("--balloon-value", "balloon_value", help="Balloon amount for --balloon-type value"),
    click.option("--balloon-percentage", "balloon_percentage", help="Balloon percentage for percentage balloons"),
    click.option("--gst-amount", "gst_amount", help="GST recouped as a one-off additional repayment"),
    click.option("--gst-instalment", "gst_instalment", type=int, help="Instalment number the GST is recouped with"),
    click.option("--account-keeping-fee", "account_keeping_fee", help="Fee charged with every instalment"),
]


def loan_options(func):
    for option in reversed(_LOAN_OPTIONS):
        func = option(func)
    return func


def _calculate(settings: EngineSettings, **options) -> LoanCalculationResult:
    inputs = build_inputs_from_options(**options)
    try:
        return calculate_loan(inputs, settings)
    except LoanCalcError as exc:
        raise click.ClickException(f"{exc.kind}: {exc.message}")


def export_to_json(path: Path, result: LoanCalculationResult) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(result_to_dict(result), f, indent=2)


def export_to_csv(path: Path, result: LoanCalculationResult) -> None:
    rows = [instalment_to_dict(i) for i in result.schedule.instalments]
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)


@click.group()
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (overrides LOAN_COMPARE_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """Loan repayment schedules with balloon, GST recoup and term comparisons."""
    try:
        settings = settings_from_env()
    except InvalidInputError as exc:
        raise click.ClickException(exc.message)
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_obj
def schedule(settings: EngineSettings, output: Optional[str], **options) -> None:
    """Compute and print the full repayment schedule."""
    result = _calculate(replace(settings, instalment_candidates=(), balloon_percentage_candidates=()), **options)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(result)
        print_schedule(result.schedule.instalments)


@cli.command()
@loan_options
@click.pass_obj
def summary(settings: EngineSettings, **options) -> None:
    """Compute and print only the summary figures for a loan."""
    result = _calculate(replace(settings, instalment_candidates=(), balloon_percentage_candidates=()), **options)
    print_summary(result)


def _candidates(values: Iterable[str], parse) -> Tuple:
    try:
        return tuple(parse(v) for v in values)
    except (InvalidInputError, ValueError) as exc:
        raise click.BadParameter(str(exc))


@cli.command()
@loan_options
@click.option("--term", "term_candidates", multiple=True, help="Instalment count to compare (repeatable)")
@click.option("--balloon", "balloon_candidates", multiple=True, help="Balloon percentage to compare (repeatable)")
@click.option("--workers", "workers", type=int, help="Worker threads for the comparison scenarios")
@click.pass_obj
def compare(
    settings: EngineSettings,
    term_candidates: Tuple[str, ...],
    balloon_candidates: Tuple[str, ...],
    workers: Optional[int],
    **options,
) -> None:
    """Compare the loan across instalment counts and balloon percentages.

    Candidates default to the configured lists, for example:

        loan-compare compare -p 100k -r 8 -n 60 --term 36 --term 48 --balloon 20
    """
    if term_candidates:
        settings = replace(settings, instalment_candidates=_candidates(term_candidates, int))
    if balloon_candidates:
        settings = replace(
            settings,
            balloon_percentage_candidates=_candidates(balloon_candidates, lambda v: decimal_from_str(v)),
        )
    if workers:
        settings = replace(settings, max_workers=workers)
    result = _calculate(settings, **options)
    print_summary(result)
    for group in result.by_number_of_instalments + result.by_balloon_percentage:
        print_comparison(group)


if __name__ == "__main__":
    cli()
