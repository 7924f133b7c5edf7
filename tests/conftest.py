"""
Pytest configuration and shared fixtures for the loan comparison tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from loan_compare.config import EngineSettings
from loan_compare.data_models import LoanInputs, RepaymentFrequency, RepaymentStructure


@pytest.fixture
def arrears_loan():
    """$100,000 over 60 monthly instalments at 8 %, repaid in arrears."""
    return LoanInputs(
        purchase_price=Decimal("100000"),
        deposit=Decimal("0"),
        interest_rate=Decimal("8"),
        number_of_instalments=60,
        loan_start_date=date(2024, 1, 15),
        repayment_structure=RepaymentStructure.ARREARS,
        repayment_frequency=RepaymentFrequency.MONTHLY,
    )


@pytest.fixture
def small_settings():
    return EngineSettings(
        instalment_candidates=(36, 48, 60),
        balloon_percentage_candidates=(Decimal("0"), Decimal("10"), Decimal("20")),
        max_workers=2,
    )
