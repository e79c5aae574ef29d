"""Chart data derived from a repayment schedule.

``project`` turns a schedule into parallel series that a chart widget can plot
directly. The module never builds or tracks charts itself; every call returns
fresh data and the rendering side owns its chart objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from .data_models import ScheduleRow

# Line datasets in plotting order: (series attribute, legend label, colour)
LINE_DATASETS = [
    ("balance", "Remaining Balance", "#3b82f6"),
    ("principal", "Principal Paid", "#10b981"),
    ("interest", "Interest Paid", "#f97316"),
]
PIE_COLORS = ["#3b82f6", "#f97316"]


@dataclass(frozen=True)
class ChartTotals:
    """Principal and interest sums for pie-style summary views."""

    principal_total: Decimal
    interest_total: Decimal


@dataclass(frozen=True)
class ChartSeries:
    """Per-month series, index ``i`` describing ``schedule[i]``."""

    labels: List[str] = field(default_factory=list)
    balance: List[Decimal] = field(default_factory=list)
    principal: List[Decimal] = field(default_factory=list)
    interest: List[Decimal] = field(default_factory=list)

    def totals(self) -> ChartTotals:
        return ChartTotals(
            principal_total=sum(self.principal, Decimal("0")),
            interest_total=sum(self.interest, Decimal("0")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable payload for the browser chart scripts."""
        totals = self.totals()
        return {
            "labels": list(self.labels),
            "datasets": [
                {
                    "label": label,
                    "data": [float(v) for v in getattr(self, attr)],
                    "borderColor": color,
                    "fill": False,
                }
                for attr, label, color in LINE_DATASETS
            ],
            "totals": {
                "labels": ["Principal", "Interest"],
                "data": [float(totals.principal_total), float(totals.interest_total)],
                "backgroundColor": PIE_COLORS,
            },
        }


def project(schedule: Iterable[ScheduleRow]) -> ChartSeries:
    """Split the schedule into label, balance, principal and interest series."""
    rows = list(schedule)
    return ChartSeries(
        labels=[f"Month {row.month}" for row in rows],
        balance=[row.balance for row in rows],
        principal=[row.principal for row in rows],
        interest=[row.interest for row in rows],
    )
