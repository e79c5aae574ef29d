"""Data models for the loan planner.

This module defines the value objects passed between the engine and its
consumers: the loan parameters, the repayment variant, individual schedule
rows and the overall result. All of them are frozen dataclasses or enums, so a
recalculation always produces new objects instead of updating old ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .exceptions import InvalidInputError


class LoanVariant(Enum):
    """Repayment regime of a loan. The variant alone selects the payment rules."""

    AMORTIZED = "amortized"
    INTEREST_ONLY = "interest-only"
    DEFERRED = "deferred"
    BALLOON = "balloon"

    @property
    def label(self) -> str:
        return _VARIANT_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "LoanVariant":
        """Return the variant for a tag such as ``"interest-only"``.

        Matching ignores case and accepts underscores in place of hyphens.
        """
        if isinstance(value, cls):
            return value
        tag = str(value).strip().lower().replace("_", "-")
        for variant in cls:
            if variant.value == tag:
                return variant
        raise InvalidInputError(f"Unknown loan type: {value}")


_VARIANT_LABELS = {
    LoanVariant.AMORTIZED: "Amortized Loan",
    LoanVariant.INTEREST_ONLY: "Interest-Only Loan",
    LoanVariant.DEFERRED: "Deferred Payment Loan",
    LoanVariant.BALLOON: "Balloon Loan",
}


class DeferredInterest(Enum):
    """How interest is treated while a deferred loan is not being repaid.

    ``ACCRUED`` charges ``principal * rate`` every month and collects the
    accumulated amount together with the principal at maturity. ``WAIVED``
    charges no interest at all.
    """

    ACCRUED = "accrued"
    WAIVED = "waived"


@dataclass(frozen=True)
class LoanParams:
    """Inputs of a single loan calculation.

    Attributes
    ----------
    principal: Decimal
        The financed amount.
    annual_rate_percent: Decimal
        Nominal annual interest rate in percent (``6`` means 6 %).
    term_months: int
        Number of monthly periods.
    balloon_amount: Decimal
        Lump sum added to the last payment of a balloon loan. Ignored by the
        other variants.
    currency_code: str
        ISO 4217 code used only when formatting amounts for display.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    balloon_amount: Decimal = Decimal("0")
    currency_code: str = "USD"

    def __post_init__(self) -> None:
        # Accept ints and floats from callers; floats go through str() to keep
        # their printed value rather than their binary expansion.
        for name in ("principal", "annual_rate_percent", "balloon_amount"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate_percent / Decimal(100) / Decimal(12)


@dataclass(frozen=True)
class ScheduleRow:
    """One month of the repayment schedule, rounded to cents."""

    month: int
    interest: Decimal
    principal: Decimal
    payment: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LoanResult:
    """Schedule and summary produced by :func:`loan_planner.engine.compute`.

    ``monthly_payment`` is the nominal payment and excludes the balloon top-up
    of the final month. ``total_interest`` is derived from the rounded rows so
    that it always reconciles with the displayed schedule.
    """

    variant: LoanVariant
    monthly_payment: Decimal
    total_interest: Decimal
    total_cost: Decimal
    schedule: Tuple[ScheduleRow, ...] = field(default_factory=tuple)
    deferred_interest: Optional[DeferredInterest] = None

    @property
    def final_payment(self) -> Decimal:
        return self.schedule[-1].payment if self.schedule else Decimal("0")

    def summary(self) -> Dict[str, Any]:
        """Return the aggregate figures as a JSON-serialisable dictionary."""
        return {
            "loan_type": self.variant.value,
            "label": self.variant.label,
            "monthly_payment": float(self.monthly_payment),
            "final_payment": float(self.final_payment),
            "total_interest": float(self.total_interest),
            "total_cost": float(self.total_cost),
            "term_months": len(self.schedule),
            "deferred_interest": self.deferred_interest.value if self.deferred_interest else None,
        }
