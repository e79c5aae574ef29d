"""Command‑line interface for the loan planner.

This module uses the ``click`` library to implement a multi‑command interface.
Users can compute full repayment schedules, view summaries, compare loan
variants or produce chart data. Results can be printed to the terminal or
exported to JSON/CSV files.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click

from .chart import project
from .data_models import DeferredInterest, LoanParams, LoanResult, LoanVariant
from .engine import compute
from .exceptions import InvalidInputError
from .formatter import CURRENCY_OPTIONS, normalize_currency, print_comparison, print_schedule, print_summary
from .serializer import to_delimited_text
from .utils import decimal_from_str, parse_amount

VARIANT_CHOICES = [v.value for v in LoanVariant]
DEFERRED_CHOICES = [p.value for p in DeferredInterest]
MAX_PRINTED_ROWS = 120


def build_params_from_options(
    principal: str,
    rate: Any,
    term: Any,
    balloon: Optional[str] = None,
    currency: Optional[str] = None,
) -> LoanParams:
    """Turn raw option or form values into ``LoanParams``.

    Malformed numbers are reported as ``click.BadParameter``; range checks are
    left to the engine.
    """
    try:
        principal_value = parse_amount(principal)
    except ValueError as exc:
        raise click.BadParameter(f"Invalid amount: {principal}") from exc
    try:
        rate_value = decimal_from_str(str(rate))
    except ValueError as exc:
        raise click.BadParameter(f"Invalid interest rate: {rate}") from exc
    try:
        term_value = int(str(term).strip())
    except ValueError as exc:
        raise click.BadParameter(f"Invalid term: {term}") from exc
    balloon_value = decimal_from_str("0")
    if balloon:
        try:
            balloon_value = parse_amount(balloon)
        except ValueError as exc:
            raise click.BadParameter(f"Invalid balloon amount: {balloon}") from exc
    return LoanParams(
        principal=principal_value,
        annual_rate_percent=rate_value,
        term_months=term_value,
        balloon_amount=balloon_value,
        currency_code=normalize_currency(currency),
    )


def run_calculation(params: LoanParams, loan_type: str, deferred_interest: str) -> LoanResult:
    """Compute a result, reporting invalid input as a click usage error."""
    try:
        return compute(
            params,
            LoanVariant.parse(loan_type),
            deferred_interest=DeferredInterest(deferred_interest),
        )
    except InvalidInputError as exc:
        raise click.BadParameter(str(exc)) from exc


def result_to_dict(result: LoanResult) -> Dict[str, Any]:
    """Return summary, schedule and chart data as one serialisable mapping."""
    return {
        "summary": result.summary(),
        "schedule": [
            {
                "month": row.month,
                "interest": float(row.interest),
                "principal": float(row.principal),
                "payment": float(row.payment),
                "balance": float(row.balance),
            }
            for row in result.schedule
        ],
        "chart": project(result.schedule).to_dict(),
    }


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: LoanResult) -> None:
    """Export the schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(to_delimited_text(result.schedule))
        f.write("\n")


def loan_options(func):
    """Attach the options shared by every calculation command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (500k and 1.2m are accepted)"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months"),
        click.option("--balloon", "-b", "balloon", help="Balloon amount due with the last payment"),
        click.option(
            "--currency",
            "currency",
            type=click.Choice(list(CURRENCY_OPTIONS), case_sensitive=False),
            default="USD",
            help="Display currency",
        ),
        click.option(
            "--deferred-interest",
            "deferred_interest",
            type=click.Choice(DEFERRED_CHOICES),
            default=DeferredInterest.ACCRUED.value,
            show_default=True,
            help="Interest treatment for deferred loans",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command‑line loan calculator for amortized, interest-only, deferred and balloon loans."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--type", "loan_type", type=click.Choice(VARIANT_CHOICES), default="amortized", help="Loan type")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    term: int,
    balloon: Optional[str],
    currency: str,
    deferred_interest: str,
    loan_type: str,
    output: Optional[str],
) -> None:
    """Compute and print the full repayment schedule."""
    params = build_params_from_options(principal, rate, term, balloon, currency)
    result = run_calculation(params, loan_type, deferred_interest)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result_to_dict(result))
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(result, params.currency_code)
        # Limit schedule length printed to avoid flooding the terminal
        if len(result.schedule) > MAX_PRINTED_ROWS:
            click.echo(
                f"Schedule has {len(result.schedule)} rows; showing first {MAX_PRINTED_ROWS} rows."
            )
            print_schedule(result.schedule[:MAX_PRINTED_ROWS])
        else:
            print_schedule(result.schedule)


@cli.command()
@loan_options
@click.option("--type", "loan_type", type=click.Choice(VARIANT_CHOICES), default="amortized", help="Loan type")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: str,
    term: int,
    balloon: Optional[str],
    currency: str,
    deferred_interest: str,
    loan_type: str,
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    params = build_params_from_options(principal, rate, term, balloon, currency)
    result = run_calculation(params, loan_type, deferred_interest)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, {"summary": result.summary()})
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result, params.currency_code)


@cli.command()
@loan_options
@click.option(
    "--type",
    "loan_types",
    type=click.Choice(VARIANT_CHOICES),
    multiple=True,
    help="Loan type to include; repeat to pick several (default: all)",
)
def compare(
    principal: str,
    rate: str,
    term: int,
    balloon: Optional[str],
    currency: str,
    deferred_interest: str,
    loan_types: Tuple[str, ...],
) -> None:
    """Compare loan types for the same amount, rate and term.

    For example:

        loan-planner compare -p 200k -r 5 -t 120 --type amortized --type balloon -b 20k
    """
    params = build_params_from_options(principal, rate, term, balloon, currency)
    selected = loan_types or tuple(VARIANT_CHOICES)
    results = [run_calculation(params, loan_type, deferred_interest) for loan_type in selected]
    print_comparison(results, params.currency_code)


@cli.command()
@loan_options
@click.option("--type", "loan_type", type=click.Choice(VARIANT_CHOICES), default="amortized", help="Loan type")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def chart(
    principal: str,
    rate: str,
    term: int,
    balloon: Optional[str],
    currency: str,
    deferred_interest: str,
    loan_type: str,
    output: Optional[str],
) -> None:
    """Print the chart series (balance, principal, interest per month) as JSON."""
    params = build_params_from_options(principal, rate, term, balloon, currency)
    result = run_calculation(params, loan_type, deferred_interest)
    payload = project(result.schedule).to_dict()
    if output:
        export_to_json(Path(output), payload)
        click.echo(f"Chart data exported to {output}")
    else:
        click.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    cli()
