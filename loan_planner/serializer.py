"""Delimited-text export of repayment schedules.

The output is what the web front end offers as a CSV download and what the
command-line ``--output file.csv`` option writes: a header line followed by
one line per month, amounts as plain two-decimal numbers.
"""

from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Iterable, List

from .data_models import ScheduleRow
from .utils import decimal_from_str

HEADER = ["Month", "Interest", "Principal", "Payment", "Remaining Balance"]
EXPORT_FILENAME = "amortization_schedule.csv"


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def to_delimited_text(schedule: Iterable[ScheduleRow]) -> str:
    """Render the schedule as comma separated text without a trailing newline."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER)
    for row in schedule:
        writer.writerow(
            [
                row.month,
                _money(row.interest),
                _money(row.principal),
                _money(row.payment),
                _money(row.balance),
            ]
        )
    return buffer.getvalue().rstrip("\n")


def parse_delimited_text(text: str) -> List[ScheduleRow]:
    """Read schedule rows back from :func:`to_delimited_text` output.

    Raises ``ValueError`` if the header does not match or a field is not
    numeric.
    """
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header != HEADER:
        raise ValueError(f"Unexpected schedule header: {header}")
    rows: List[ScheduleRow] = []
    for record in reader:
        if not record:
            continue
        if len(record) != len(HEADER):
            raise ValueError(f"Expected {len(HEADER)} fields, got {len(record)}: {record}")
        month, interest, principal, payment, balance = record
        rows.append(
            ScheduleRow(
                month=int(month),
                interest=decimal_from_str(interest),
                principal=decimal_from_str(principal),
                payment=decimal_from_str(payment),
                balance=decimal_from_str(balance),
            )
        )
    return rows
