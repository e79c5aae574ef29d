"""Core calculation engine for the loan planner.

This module builds month-by-month repayment schedules for the four supported
loan variants: amortized, interest-only, deferred and balloon. Each variant's
payment rules live in a ``PaymentPolicy`` subclass; :func:`compute` validates
the parameters, runs the shared balance recurrence against the selected policy
and returns a ``LoanResult``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, getcontext
from typing import Dict, List, Tuple, Type

from .data_models import DeferredInterest, LoanParams, LoanResult, LoanVariant, ScheduleRow
from .exceptions import InvalidInputError
from .utils import round_money

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Residual balances below half a cent are treated as fully repaid
RESIDUAL = Decimal("0.005")
# Upper bounds on user amounts, keeping every emitted cent value within range
MAX_AMOUNT = Decimal("1e15")
MAX_RATE_PERCENT = Decimal("1000")


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the equal monthly payment that repays ``principal`` in ``term`` months.

    The formula is:

        payment = P * i / (1 - (1 + i)^-n)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise InvalidInputError("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    return principal * rate_per_month / (1 - (1 + rate_per_month) ** -term)


class PaymentPolicy:
    """Payment rules of one loan variant.

    A policy is created for a single calculation. ``monthly_payment`` is the
    nominal payment; :meth:`period` returns the unrounded
    ``(interest, principal, payment)`` triple for a month given the balance
    carried in from the previous month.
    """

    variant: LoanVariant

    def __init__(self, params: LoanParams) -> None:
        self.principal = params.principal
        self.rate = params.monthly_rate
        self.term = params.term_months
        self.monthly_payment = self._nominal_payment()

    def _nominal_payment(self) -> Decimal:
        raise NotImplementedError

    def period(self, month: int, balance: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
        raise NotImplementedError

    def is_final(self, month: int) -> bool:
        return month == self.term


class AmortizedPolicy(PaymentPolicy):
    """Equal payments whose principal share grows as the balance declines."""

    variant = LoanVariant.AMORTIZED

    def _nominal_payment(self) -> Decimal:
        return _calculate_annuity_payment(self.principal, self.rate, self.term)

    def period(self, month: int, balance: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
        interest = balance * self.rate
        return interest, self.monthly_payment - interest, self.monthly_payment


class InterestOnlyPolicy(PaymentPolicy):
    """Interest is paid monthly and the whole principal in the last month."""

    variant = LoanVariant.INTEREST_ONLY

    def _nominal_payment(self) -> Decimal:
        return self.principal * self.rate

    def period(self, month: int, balance: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
        interest = balance * self.rate
        if self.is_final(month):
            return interest, balance, interest + balance
        return interest, ZERO, self.monthly_payment


class DeferredPolicy(PaymentPolicy):
    """Nothing is paid until maturity, when the principal falls due.

    With ``DeferredInterest.ACCRUED`` every month records ``principal * rate``
    of interest which is collected, together with the principal, in the last
    month. With ``DeferredInterest.WAIVED`` no interest is charged.
    """

    variant = LoanVariant.DEFERRED

    def __init__(self, params: LoanParams, interest_policy: DeferredInterest) -> None:
        self.interest_policy = interest_policy
        super().__init__(params)

    def _nominal_payment(self) -> Decimal:
        return ZERO

    def period(self, month: int, balance: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
        interest = ZERO
        if self.interest_policy is DeferredInterest.ACCRUED:
            interest = self.principal * self.rate
        if self.is_final(month):
            # Every row carries the same rounded interest, so the amount due
            # matches the sum of the rows
            return interest, balance, balance + round_money(interest) * self.term
        return interest, ZERO, ZERO


class BalloonPolicy(PaymentPolicy):
    """Amortized over one month less than the term, plus a lump sum at the end.

    The last month repays whatever balance remains and adds
    ``balloon_amount`` on top of the nominal payment.
    """

    variant = LoanVariant.BALLOON

    def __init__(self, params: LoanParams) -> None:
        self.balloon_amount = params.balloon_amount
        super().__init__(params)

    def _nominal_payment(self) -> Decimal:
        # A one-month balloon loan has no shorter term to amortize over
        return _calculate_annuity_payment(self.principal, self.rate, max(self.term - 1, 1))

    def period(self, month: int, balance: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
        interest = balance * self.rate
        if self.is_final(month):
            return interest, balance, self.monthly_payment + self.balloon_amount
        return interest, self.monthly_payment - interest, self.monthly_payment


POLICIES: Dict[LoanVariant, Type[PaymentPolicy]] = {
    LoanVariant.AMORTIZED: AmortizedPolicy,
    LoanVariant.INTEREST_ONLY: InterestOnlyPolicy,
    LoanVariant.DEFERRED: DeferredPolicy,
    LoanVariant.BALLOON: BalloonPolicy,
}


def policy_for(
    variant: LoanVariant,
    params: LoanParams,
    deferred_interest: DeferredInterest = DeferredInterest.ACCRUED,
) -> PaymentPolicy:
    """Instantiate the payment policy registered for ``variant``."""
    policy_cls = POLICIES[LoanVariant.parse(variant)]
    if policy_cls is DeferredPolicy:
        return DeferredPolicy(params, deferred_interest)
    return policy_cls(params)


def validate_params(params: LoanParams) -> None:
    """Raise ``InvalidInputError`` if no schedule can be built from ``params``."""
    if params.principal <= 0:
        raise InvalidInputError("Principal must be positive")
    if params.principal > MAX_AMOUNT or params.balloon_amount > MAX_AMOUNT:
        raise InvalidInputError(f"Amounts above {MAX_AMOUNT:,.0f} are not supported")
    if params.annual_rate_percent < 0:
        raise InvalidInputError("Interest rate cannot be negative")
    if params.annual_rate_percent > MAX_RATE_PERCENT:
        raise InvalidInputError(f"Interest rate above {MAX_RATE_PERCENT}% is not supported")
    if isinstance(params.term_months, bool) or not isinstance(params.term_months, int):
        raise InvalidInputError("Term must be a whole number of months")
    if params.term_months <= 0:
        raise InvalidInputError("Term must be positive")
    if params.balloon_amount < 0:
        raise InvalidInputError("Balloon amount cannot be negative")


def compute(
    params: LoanParams,
    variant: LoanVariant,
    *,
    deferred_interest: DeferredInterest = DeferredInterest.ACCRUED,
) -> LoanResult:
    """Compute the repayment schedule and summary for a loan.

    Parameters
    ----------
    params: LoanParams
        The loan parameters.
    variant: LoanVariant
        The repayment regime. Tags such as ``"interest-only"`` are accepted.
    deferred_interest: DeferredInterest
        Interest treatment for ``LoanVariant.DEFERRED``; ignored otherwise.

    Returns
    -------
    LoanResult
        One ``ScheduleRow`` per month with every amount rounded to cents,
        plus totals summed from those rounded rows.

    Raises
    ------
    InvalidInputError
        If the principal or term is not positive, or the rate or balloon
        amount is negative.
    """
    validate_params(params)
    policy = policy_for(variant, params, deferred_interest)

    balance = params.principal
    rows: List[ScheduleRow] = []
    for month in range(1, params.term_months + 1):
        interest, principal_paid, payment = policy.period(month, balance)
        balance -= principal_paid
        if balance < RESIDUAL:
            balance = ZERO
        rows.append(
            ScheduleRow(
                month=month,
                interest=round_money(interest),
                principal=round_money(principal_paid),
                payment=round_money(payment),
                balance=round_money(balance),
            )
        )

    total_interest = sum((row.interest for row in rows), ZERO)
    result = LoanResult(
        variant=policy.variant,
        monthly_payment=round_money(policy.monthly_payment),
        total_interest=total_interest,
        total_cost=params.principal + total_interest,
        schedule=tuple(rows),
        deferred_interest=deferred_interest if policy.variant is LoanVariant.DEFERRED else None,
    )
    logger.debug(
        "Computed %s schedule: %d months, payment %s, total interest %s",
        policy.variant.value,
        len(rows),
        result.monthly_payment,
        result.total_interest,
    )
    return result
