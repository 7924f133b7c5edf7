"""
Tests for the schedule generator.

Covers the level repayment formula in arrears and in advance, balloon and
GST recoup handling, per-instalment rounding with residual absorption and
instalment dates for each repayment frequency.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal, getcontext

import pytest

from loan_compare.data_models import RepaymentFrequency, RepaymentStructure
from loan_compare.engine import calculate_repayment, generate_schedule
from loan_compare.errors import InvalidInputError, ScheduleArithmeticError

MONTHLY_8 = Decimal("0.08") / Decimal(12)
START = date(2024, 1, 15)


def _schedule(principal="100000", rate=MONTHLY_8, n=60, balloon="0", structure=RepaymentStructure.ARREARS, **kwargs):
    return generate_schedule(
        principal=Decimal(principal),
        periodic_rate=rate,
        number_of_instalments=n,
        balloon_amount=Decimal(balloon),
        repayment_structure=structure,
        loan_start_date=kwargs.pop("start", START),
        repayment_frequency=kwargs.pop("frequency", RepaymentFrequency.MONTHLY),
        **kwargs,
    )


def _assert_chained(schedule):
    instalments = schedule.instalments
    for current, following in zip(instalments, instalments[1:]):
        assert following.opening_balance == current.closing_balance
    for row in instalments:
        assert row.closing_balance == row.opening_balance - row.principal - row.additional_repayments
        assert row.principal == row.repayment - row.interest
    assert instalments[-1].closing_balance == 0


class TestCalculateRepayment:
    def test_standard_five_year_loan(self):
        # R = P * r / (1 - (1 + r)^-n) with P = 100000, r = 0.08 / 12, n = 60
        repayment = calculate_repayment(Decimal("100000"), MONTHLY_8, 60)
        assert abs(repayment - Decimal("2027.64")) < Decimal("0.005")

    def test_advance_is_arrears_discounted_one_period(self):
        arrears = calculate_repayment(Decimal("100000"), MONTHLY_8, 60)
        advance = calculate_repayment(
            Decimal("100000"), MONTHLY_8, 60, repayment_structure=RepaymentStructure.ADVANCE
        )
        assert abs(advance - arrears / (1 + MONTHLY_8)) < Decimal("0.0000001")

    def test_zero_rate_is_straight_line(self):
        repayment = calculate_repayment(Decimal("12000"), Decimal("0"), 12, Decimal("2400"))
        assert repayment == Decimal("800")

    def test_balloon_lowers_repayment(self):
        without = calculate_repayment(Decimal("100000"), MONTHLY_8, 60)
        with_balloon = calculate_repayment(Decimal("100000"), MONTHLY_8, 60, Decimal("20000"))
        assert with_balloon < without

    @pytest.mark.parametrize("n", [0, -3])
    def test_non_positive_instalments_rejected(self, n):
        with pytest.raises(InvalidInputError):
            calculate_repayment(Decimal("1000"), MONTHLY_8, n)

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidInputError):
            calculate_repayment(Decimal("1000"), Decimal("-0.01"), 12)

    def test_balloon_covering_principal_is_impossible(self):
        with pytest.raises(ScheduleArithmeticError):
            calculate_repayment(Decimal("1000"), Decimal("0"), 12, Decimal("1000"))

    def test_discounted_balloon_above_principal_is_impossible(self):
        with pytest.raises(ScheduleArithmeticError):
            calculate_repayment(Decimal("1000"), Decimal("0.01"), 12, Decimal("1200"))


class TestGenerateScheduleGolden:
    """Three instalment schedules at 1 % per period, checked by hand."""

    def test_arrears(self):
        schedule = _schedule(principal="1000", rate=Decimal("0.01"), n=3)
        rows = [
            (r.opening_balance, r.interest, r.principal, r.additional_repayments, r.closing_balance)
            for r in schedule.instalments
        ]
        assert schedule.schedule_repayment == Decimal("340.02")
        assert rows == [
            (Decimal("1000.00"), Decimal("10.00"), Decimal("330.02"), Decimal("0"), Decimal("669.98")),
            (Decimal("669.98"), Decimal("6.70"), Decimal("333.32"), Decimal("0"), Decimal("336.66")),
            (Decimal("336.66"), Decimal("3.37"), Decimal("336.65"), Decimal("0.01"), Decimal("0")),
        ]
        assert schedule.total_interest_charges == Decimal("20.07")
        assert schedule.total_amount_to_be_paid == Decimal("1020.07")

    def test_advance(self):
        schedule = _schedule(principal="1000", rate=Decimal("0.01"), n=3, structure=RepaymentStructure.ADVANCE)
        assert schedule.schedule_repayment == Decimal("336.66")
        assert [r.interest for r in schedule.instalments] == [Decimal("6.63"), Decimal("3.33"), Decimal("0.00")]
        assert [r.closing_balance for r in schedule.instalments] == [
            Decimal("669.97"),
            Decimal("336.64"),
            Decimal("0"),
        ]
        assert schedule.instalments[-1].additional_repayments == Decimal("-0.02")
        assert schedule.total_interest_charges == Decimal("9.96")
        assert schedule.total_amount_to_be_paid == Decimal("1009.96")


class TestGenerateSchedule:
    def test_five_year_loan_totals(self):
        schedule = _schedule()
        assert schedule.schedule_repayment == Decimal("2027.64")
        assert abs(schedule.total_amount_to_be_paid - Decimal("121658.40")) < Decimal("0.50")
        assert schedule.total_amount_to_be_paid == Decimal("100000") + schedule.total_interest_charges
        assert len(schedule.instalments) == 60
        _assert_chained(schedule)

    @pytest.mark.parametrize("structure", list(RepaymentStructure))
    @pytest.mark.parametrize("frequency", list(RepaymentFrequency))
    def test_final_balance_is_zero_with_balloon(self, structure, frequency):
        schedule = _schedule(
            principal="45000", rate=Decimal("0.095") / 26, n=78, balloon="9000", structure=structure, frequency=frequency
        )
        _assert_chained(schedule)
        residual = schedule.instalments[-1].additional_repayments - Decimal("9000")
        assert abs(residual) < Decimal("1.00")

    def test_zero_rate(self):
        schedule = _schedule(principal="12000", rate=Decimal("0"), n=12)
        assert schedule.schedule_repayment == Decimal("1000.00")
        assert schedule.total_interest_charges == 0
        assert schedule.total_amount_to_be_paid == Decimal("12000")
        assert schedule.instalments[-1].additional_repayments == 0

    def test_balloon_paid_with_last_instalment(self):
        schedule = _schedule(principal="10000", rate=Decimal("0"), n=4, balloon="2000")
        assert schedule.schedule_repayment == Decimal("2000.00")
        assert [r.additional_repayments for r in schedule.instalments] == [0, 0, 0, Decimal("2000")]
        _assert_chained(schedule)

    def test_gst_recoup_leaves_repayment_unchanged(self):
        plain = _schedule()
        schedule = _schedule(gst_amount=Decimal("5000"), gst_recoup_instalment_index=3)

        assert schedule.schedule_repayment == plain.schedule_repayment == Decimal("2027.64")
        assert schedule.instalments[2].additional_repayments == Decimal("5000")
        assert schedule.instalments[2].closing_balance == plain.instalments[2].closing_balance - Decimal("5000")
        assert all(r.additional_repayments == 0 for r in schedule.instalments[:2])
        assert all(r.additional_repayments == 0 for r in schedule.instalments[3:-1])
        # The recoup compounds to the end of the term and is handed back there.
        returned = Decimal("5000") * (1 + MONTHLY_8) ** 57
        assert abs(schedule.instalments[-1].additional_repayments + returned) < Decimal("1.00")
        _assert_chained(schedule)

    def test_result_independent_of_thread_decimal_context(self):
        expected = _schedule(gst_amount=Decimal("5000"), gst_recoup_instalment_index=3)

        def low_precision():
            getcontext().prec = 6
            return _schedule(gst_amount=Decimal("5000"), gst_recoup_instalment_index=3)

        with ThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(low_precision).result() == expected

    def test_gst_recoup_index_out_of_range(self):
        with pytest.raises(InvalidInputError):
            _schedule(n=12, gst_amount=Decimal("500"), gst_recoup_instalment_index=13)

    def test_account_keeping_fees_reported_separately(self):
        plain = _schedule(n=12)
        schedule = _schedule(n=12, account_keeping_fee=Decimal("10"))
        assert schedule.total_account_keeping_fees == Decimal("120.00")
        assert schedule.total_amount_to_be_paid == plain.total_amount_to_be_paid

    def test_single_instalment(self):
        schedule = _schedule(principal="1000", rate=Decimal("0.01"), n=1, balloon="400")
        assert schedule.schedule_repayment == Decimal("610.00")
        _assert_chained(schedule)


class TestInstalmentDates:
    def test_monthly_dates_clamp_to_month_end(self):
        schedule = _schedule(n=3, start=date(2024, 1, 31))
        assert [r.instalment_date for r in schedule.instalments] == [
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]
        assert schedule.first_repayment_due_date == date(2024, 2, 29)
        assert schedule.loan_end_date == date(2024, 4, 30)

    def test_fortnightly_dates(self):
        schedule = _schedule(n=2, start=date(2024, 1, 1), frequency=RepaymentFrequency.FORTNIGHTLY)
        assert [r.instalment_date for r in schedule.instalments] == [date(2024, 1, 15), date(2024, 1, 29)]

    def test_weekly_dates(self):
        schedule = _schedule(n=2, start=date(2024, 1, 1), frequency=RepaymentFrequency.WEEKLY)
        assert [r.instalment_date for r in schedule.instalments] == [date(2024, 1, 8), date(2024, 1, 15)]
