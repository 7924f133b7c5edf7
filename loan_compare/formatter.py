"""Output helpers for the loan comparison engine.

This module renders loan summaries, repayment schedules and comparison groups
in a plain tabular text format for the command line. It only reads the
facade's result structures.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import ComparisonAxis, ComparisonGroup, Instalment, LoanCalculationResult


def print_summary(result: LoanCalculationResult) -> None:
    """Print the primary loan figures in a human-readable format."""
    inputs, loan, schedule = result.inputs, result.loan, result.schedule
    print("Summary")
    print("-" * 72)
    print(f"Purchase price          : {inputs.purchase_price:.2f}")
    print(f"Deposit / trade in      : {inputs.deposit:.2f}")
    print(f"Loan amount             : {loan.loan_amount:.2f}")
    if loan.amount_financed_lender_fee or loan.amount_financed_other_fees:
        print(f"Financed lender fee     : {loan.amount_financed_lender_fee:.2f}")
        print(f"Financed other charges  : {loan.amount_financed_other_fees:.2f}")
    print(f"Net amount financed     : {loan.net_amount_financed:.2f}")
    if loan.balloon_amount:
        print(f"Balloon amount          : {loan.balloon_amount:.2f}")
    print(f"Interest rate           : {inputs.interest_rate:.2f}% ({inputs.repayment_frequency.value.lower()})")
    print(f"Repayment structure     : {inputs.repayment_structure.value}")
    print(f"Number of instalments   : {inputs.number_of_instalments}")
    print(f"Schedule repayment      : {schedule.schedule_repayment:.2f}")
    print(f"Total interest charges  : {schedule.total_interest_charges:.2f}")
    print(f"Total to be paid        : {schedule.total_amount_to_be_paid:.2f}")
    if schedule.total_account_keeping_fees:
        print(f"Account keeping fees    : {schedule.total_account_keeping_fees:.2f}")
    print(f"First repayment due     : {schedule.first_repayment_due_date.isoformat()}")
    print(f"Loan end date           : {schedule.loan_end_date.isoformat()}")
    print("-" * 72)


def print_schedule(instalments: Iterable[Instalment]) -> None:
    """Print the repayment schedule as a simple table."""
    headers = [
        "No",
        "Date",
        "Opening",
        "Additional",
        "Repayment",
        "Interest",
        "Principal",
        "Closing",
    ]
    print("\t".join(headers))
    for entry in instalments:
        row = [
            str(entry.instalment_no),
            entry.instalment_date.isoformat(),
            f"{entry.opening_balance:.2f}",
            f"{entry.additional_repayments:.2f}",
            f"{entry.repayment:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.closing_balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(group: ComparisonGroup) -> None:
    """Print one comparison group, one row per scenario.

    An instalment-count group lists its loans by balloon percentage and a
    balloon-percentage group lists them by instalment count. Skipped
    scenarios are listed after the table with the reason.
    """
    by_term = group.axis is ComparisonAxis.NUMBER_OF_INSTALMENTS
    context = group.context
    if by_term:
        print(f"Comparison by number of instalments: {context.number_of_instalments}")
    else:
        balloon = "n/a" if context.balloon_amount is None else f"{context.balloon_amount:.2f}"
        print(f"Comparison by balloon percentage: {context.balloon_value_percentage:.2f}% (balloon {balloon})")
    print("=" * 72)
    print(f"Loan amount {context.loan_amount:.2f}, net amount financed {context.net_amount_financed:.2f}")
    label = "Balloon %" if by_term else "Instalments"
    print(f"{label:>12s} {'Balloon':>12s} {'Repayment':>12s} {'Interest':>14s} {'Total':>14s}")
    for entry in group.entries:
        candidate = f"{entry.candidate:.2f}" if by_term else f"{entry.candidate}"
        print(
            f"{candidate:>12s} {entry.loan.balloon_amount:12.2f} {entry.schedule.schedule_repayment:12.2f} "
            f"{entry.schedule.total_interest_charges:14.2f} {entry.schedule.total_amount_to_be_paid:14.2f}"
        )
    for skipped in group.skipped:
        print(f"Skipped {skipped.candidate}: {skipped.reason}")
    print("=" * 72)
