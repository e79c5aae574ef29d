"""Output helpers for the loan planner.

This module renders results for people: currency strings for a chosen display
currency, and the summary, schedule and comparison tables printed by the
command-line interface. Currency codes only select a symbol; amounts are never
converted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Sequence

from .data_models import LoanResult, ScheduleRow

CURRENCY_OPTIONS = {
    'USD': {'label': 'US dollar', 'prefix': '$', 'suffix': ''},
    'EUR': {'label': 'Euro', 'prefix': '€', 'suffix': ''},
    'GBP': {'label': 'British pound', 'prefix': '£', 'suffix': ''},
    'PLN': {'label': 'Polish złoty', 'prefix': '', 'suffix': ' zł'},
}
DEFAULT_CURRENCY = 'USD'


def normalize_currency(code: str | None) -> str:
    """Return ``code`` upper-cased if it is a known currency, else the default."""
    code = (code or DEFAULT_CURRENCY).strip().upper()
    return code if code in CURRENCY_OPTIONS else DEFAULT_CURRENCY


def format_money(amount: Decimal, currency_code: str = DEFAULT_CURRENCY) -> str:
    """Format ``amount`` with thousands separators and the currency symbol.

    Negative amounts put the minus sign before the symbol (``-$1,234.50``).
    """
    meta = CURRENCY_OPTIONS[normalize_currency(currency_code)]
    sign = '-' if amount < 0 else ''
    return f"{sign}{meta['prefix']}{abs(amount):,.2f}{meta['suffix']}"


def print_summary(result: LoanResult, currency_code: str = DEFAULT_CURRENCY) -> None:
    """Print a summary of loan metrics in a human‑readable format."""
    def money(value: Decimal) -> str:
        return format_money(value, currency_code)

    print(f"Summary: {result.variant.label}")
    print("-" * 72)
    print(f"Monthly payment    : {money(result.monthly_payment)}")
    if result.final_payment != result.monthly_payment:
        print(f"Final payment      : {money(result.final_payment)}")
    print(f"Total interest     : {money(result.total_interest)}")
    print(f"Total cost         : {money(result.total_cost)}")
    print(f"Term               : {len(result.schedule)} months")
    if result.deferred_interest is not None:
        print(f"Deferred interest  : {result.deferred_interest.value}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleRow]) -> None:
    """Print the repayment schedule as a tab separated table."""
    print("\t".join(["Month", "Interest", "Principal", "Payment", "Balance"]))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.month),
                    f"{row.interest:.2f}",
                    f"{row.principal:.2f}",
                    f"{row.payment:.2f}",
                    f"{row.balance:.2f}",
                ]
            )
        )


def print_comparison(results: Sequence[LoanResult], currency_code: str = DEFAULT_CURRENCY) -> None:
    """Print several loan results side by side.

    A final row shows the spread in total cost between the most and least
    expensive result.
    """
    metrics: Dict[str, str] = {
        "monthly_payment": "Monthly payment",
        "final_payment": "Final payment",
        "total_interest": "Total interest",
        "total_cost": "Total cost",
    }
    print("Comparison")
    print("=" * 72)
    header = f"{'Metric':18s}" + "".join(f" {r.variant.value:>16s}" for r in results)
    print(header)
    for attr, label in metrics.items():
        values = [getattr(r, attr) for r in results]
        print(f"{label:18s}" + "".join(f" {format_money(v, currency_code):>16s}" for v in values))
    if len(results) > 1:
        costs = [r.total_cost for r in results]
        spread = max(costs) - min(costs)
        print(f"{'Cost spread':18s} {format_money(spread, currency_code):>16s}")
    print("=" * 72)
