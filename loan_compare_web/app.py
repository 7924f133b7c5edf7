"""JSON endpoint wrapping the loan calculation facade.

The loan form posts its field values (the same camelCase payload it keeps
client side) and receives the recalculated loan, its instalments and both
comparison groups. Each request is a synchronous call to ``calculate_loan``;
debouncing edits is left to the form.
"""

import logging
import os
from datetime import date

from flask import Flask, jsonify, request

from loan_compare.calculator import calculate_loan
from loan_compare.config import settings_from_env
from loan_compare.errors import LoanCalcError
from loan_compare.serialization import result_to_dict, inputs_from_dict

app = Flask(__name__)
app.config["ENGINE_SETTINGS"] = settings_from_env()
logging.basicConfig(level=app.config["ENGINE_SETTINGS"].log_level)

# Values the form starts with before the user edits anything.
DEFAULT_LOAN = {
    "purchasePrice": 100000,
    "deposit": 0,
    "lenderFee": 0,
    "lenderFeeFinanced": False,
    "otherFeesCharges": None,
    "otherFeesChargesFinanced": False,
    "balloonType": None,
    "balloonValueValue": None,
    "balloonValuePercentage": None,
    "gstRecoup": False,
    "gstAmount": None,
    "gstRecoupInstalment": None,
    "accountKeepingFee": 0,
    "repaymentStructure": "Advance",
    "repaymentFrequency": "Monthly",
    "numberOfInstalments": 60,
    "interestRate": 8,
}


def _error_response(exc: LoanCalcError, status: int = 400):
    return jsonify({"error": exc.to_dict()}), status


@app.get("/api/loan/defaults")
def loan_defaults():
    payload = dict(DEFAULT_LOAN)
    payload["loanStartDate"] = date.today().isoformat()
    return jsonify(payload)


@app.post("/api/loan/calculate")
def calculate():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": {"type": "InvalidInput", "field": None, "message": "Expected a JSON object"}}), 400
    try:
        inputs = inputs_from_dict(data)
        result = calculate_loan(inputs, app.config["ENGINE_SETTINGS"])
    except LoanCalcError as exc:
        app.logger.info("Rejected loan calculation: %s", exc.message)
        return _error_response(exc)
    return jsonify(result_to_dict(result))


if __name__ == "__main__":
    print("Starting Loan Comparison API...")
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8710)), debug=True)
