"""
Tests for converting annual rates into periodic rates.
"""

from decimal import Decimal

import pytest

from loan_compare.data_models import RepaymentFrequency
from loan_compare.errors import InvalidInputError
from loan_compare.rates import convert_rate


class TestConvertRate:
    @pytest.mark.parametrize(
        "frequency, periods",
        [
            (RepaymentFrequency.MONTHLY, 12),
            (RepaymentFrequency.FORTNIGHTLY, 26),
            (RepaymentFrequency.WEEKLY, 52),
        ],
    )
    def test_periods_per_year(self, frequency, periods):
        rate = convert_rate(Decimal("8"), frequency)
        assert rate.periods_per_year == periods
        assert rate.periodic_rate == Decimal("0.08") / Decimal(periods)

    def test_monthly_rate_for_eight_percent(self):
        rate = convert_rate(Decimal("8"), RepaymentFrequency.MONTHLY)
        assert abs(rate.periodic_rate - Decimal("0.0066667")) < Decimal("0.0000001")

    def test_zero_rate_allowed(self):
        assert convert_rate(Decimal("0"), RepaymentFrequency.WEEKLY).periodic_rate == 0

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidInputError) as excinfo:
            convert_rate(Decimal("-1"), RepaymentFrequency.MONTHLY)
        assert excinfo.value.field == "interest_rate"

    def test_unknown_frequency_rejected(self):
        with pytest.raises(InvalidInputError):
            convert_rate(Decimal("8"), "Quarterly")
