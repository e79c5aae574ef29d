import json
import os

import click
from flask import Flask, Response, jsonify, render_template, request

from loan_planner.chart import project
from loan_planner.data_models import DeferredInterest, LoanVariant
from loan_planner.engine import compute
from loan_planner.exceptions import InvalidInputError
from loan_planner.formatter import CURRENCY_OPTIONS, format_money, normalize_currency
from loan_planner.main import build_params_from_options, result_to_dict
from loan_planner.serializer import EXPORT_FILENAME, to_delimited_text

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.config["LOAN_PREVIEW_ROWS"] = int(os.environ.get("LOAN_PREVIEW_ROWS", "120"))
app.config["LOAN_DEFERRED_INTEREST"] = os.environ.get("LOAN_DEFERRED_INTEREST", DeferredInterest.ACCRUED.value)
app.config["LOAN_DEFAULT_CURRENCY"] = normalize_currency(os.environ.get("LOAN_DEFAULT_CURRENCY", "USD"))

# Errors a user can fix by correcting the form
FORM_ERRORS = (click.BadParameter, InvalidInputError, ValueError)


def _normalized_currency(form) -> str:
    return normalize_currency(form.get("currency", app.config["LOAN_DEFAULT_CURRENCY"]))


def _deferred_interest(form) -> DeferredInterest:
    return DeferredInterest(form.get("deferred_interest", app.config["LOAN_DEFERRED_INTEREST"]))


def _form_to_params(form):
    # JSON clients may send numbers instead of strings
    principal = str(form.get("principal", "")).strip()
    rate = str(form.get("rate", "")).strip() or "0"
    term = str(form.get("term", "")).strip() or "0"
    balloon = str(form.get("balloon") or "").strip() or None
    return build_params_from_options(principal, rate, term, balloon, _normalized_currency(form))


def _run_analysis(form):
    params = _form_to_params(form)
    variant = LoanVariant.parse(form.get("loan_type", LoanVariant.AMORTIZED.value))
    result = compute(params, variant, deferred_interest=_deferred_interest(form))
    return params, result


def _schedule_for_view(result, show_full_schedule: bool):
    """Return the rows to render and how many were left out."""
    if show_full_schedule:
        return result.schedule, 0
    limit = app.config["LOAN_PREVIEW_ROWS"]
    preview = result.schedule[:limit]
    return preview, len(result.schedule) - len(preview)


@app.route("/", methods=["GET", "POST"])
def index():
    result = None
    schedule = None
    truncated = 0
    error = None
    show_full_schedule = False
    currency_code = app.config["LOAN_DEFAULT_CURRENCY"]
    loan_type = LoanVariant.AMORTIZED.value

    if request.method == "POST":
        currency_code = _normalized_currency(request.form)
        loan_type = request.form.get("loan_type", loan_type)
        show_full_schedule = request.form.get("show_full_schedule") == "1"
        try:
            _, result = _run_analysis(request.form)
            schedule, truncated = _schedule_for_view(result, show_full_schedule)
        except FORM_ERRORS as exc:
            app.logger.warning("Rejected loan input: %s", exc)
            error = str(exc)

    chart_payload = json.dumps(project(result.schedule).to_dict()) if result else "null"

    return render_template(
        "index.html",
        result=result,
        schedule=schedule,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        error=error,
        form=request.form,
        loan_type=loan_type,
        loan_types=list(LoanVariant),
        deferred_options=[p.value for p in DeferredInterest],
        deferred_default=app.config["LOAN_DEFERRED_INTEREST"],
        currency_code=currency_code,
        currency_options=CURRENCY_OPTIONS,
        money=lambda amount: format_money(amount, currency_code),
        asset_version=app.config["ASSET_VERSION"],
        chart_payload=chart_payload,
    )


@app.post("/export.csv")
def export_csv():
    try:
        _, result = _run_analysis(request.form)
    except FORM_ERRORS as exc:
        app.logger.warning("Rejected loan input for export: %s", exc)
        return Response(str(exc), status=400, mimetype="text/plain")
    return Response(
        to_delimited_text(result.schedule),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )


@app.post("/api/schedule")
def api_schedule():
    body = request.get_json(silent=True)
    form = body if isinstance(body, dict) else request.form
    try:
        params, result = _run_analysis(form)
    except FORM_ERRORS as exc:
        app.logger.warning("Rejected loan input for API: %s", exc)
        return jsonify({"error": str(exc)}), 400
    payload = result_to_dict(result)
    payload["summary"]["currency"] = params.currency_code
    return jsonify(payload)


if __name__ == "__main__":
    print("Starting Loan Planner web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
