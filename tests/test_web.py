"""
Tests for the JSON endpoint.
"""

import pytest

from loan_compare_web.app import DEFAULT_LOAN, app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestLoanApi:
    def test_defaults(self, client):
        response = client.get("/api/loan/defaults")
        assert response.status_code == 200
        payload = response.get_json()
        assert payload["numberOfInstalments"] == 60
        assert "loanStartDate" in payload

    def test_calculate(self, client):
        body = dict(DEFAULT_LOAN, loanStartDate="2024-01-01", repaymentStructure="Arrears")
        response = client.post("/api/loan/calculate", json=body)
        assert response.status_code == 200
        payload = response.get_json()
        assert payload["loanDetails"]["scheduleRepayment"] == 2027.64
        assert len(payload["loanDetails"]["instalments"]) == 60
        by_term = payload["loansByComparisonNumberOfInstalments"]
        by_balloon = payload["loansByComparisonBalloonAmountPercentage"]
        assert [group["loan"]["numberOfInstalments"] for group in by_term] == [12, 24, 36, 48, 60, 72, 84]
        assert all(len(group["loans"]) == 6 for group in by_term)
        assert len(by_balloon) == 6
        assert [loan["numberOfInstalments"] for loan in by_balloon[0]["loans"]] == [12, 24, 36, 48, 60, 72, 84]

    def test_invalid_input(self, client):
        body = dict(DEFAULT_LOAN, loanStartDate="2024-01-01", balloonType="Percentage (By Loan Amount)")
        response = client.post("/api/loan/calculate", json=body)
        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["type"] == "InvalidInput"
        assert error["field"] == "balloon_value_percentage"
        assert "loanDetails" not in response.get_json()

    def test_non_object_body(self, client):
        response = client.post("/api/loan/calculate", json=[1, 2])
        assert response.status_code == 400
