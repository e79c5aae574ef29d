# tests/test_engine.py
from decimal import Decimal

import pytest

from loan_planner.data_models import DeferredInterest, LoanVariant
from loan_planner.engine import (
    AmortizedPolicy,
    BalloonPolicy,
    DeferredPolicy,
    InterestOnlyPolicy,
    compute,
    policy_for,
)
from loan_planner.exceptions import InvalidInputError

CENT = Decimal("0.01")


def test_amortized_thirty_year_mortgage(make_params):
    result = compute(make_params(100_000, 6, 360), LoanVariant.AMORTIZED)
    assert result.monthly_payment == Decimal("599.55")
    assert result.schedule[0].interest == Decimal("500.00")
    assert result.schedule[359].balance == Decimal("0.00")
    assert result.deferred_interest is None


def test_amortized_principal_adds_up_to_loan(make_params):
    params = make_params(100_000, 6, 360)
    result = compute(params, LoanVariant.AMORTIZED)
    repaid = sum(row.principal for row in result.schedule)
    assert abs(repaid - params.principal) <= CENT * params.term_months


def test_amortized_rows_split_the_nominal_payment(make_params):
    result = compute(make_params(25_000, 7.5, 48), LoanVariant.AMORTIZED)
    for row in result.schedule:
        assert abs(row.principal + row.interest - result.monthly_payment) <= CENT
        assert row.payment == result.monthly_payment


def test_interest_only_two_year_loan(make_params):
    result = compute(make_params(20_000, 5, 24), LoanVariant.INTEREST_ONLY)
    assert result.monthly_payment == Decimal("83.33")
    for row in result.schedule[:23]:
        assert row.payment == Decimal("83.33")
        assert row.principal == Decimal("0.00")
        assert row.balance == Decimal("20000.00")
    last = result.schedule[23]
    assert last.payment == Decimal("20083.33")
    assert last.principal == Decimal("20000.00")
    assert last.balance == Decimal("0.00")


def test_balloon_final_payment_adds_lump_sum(make_params):
    result = compute(make_params(50_000, 4, 60, balloon=10_000), LoanVariant.BALLOON)
    before, last = result.schedule[-2], result.schedule[-1]
    assert last.payment == result.monthly_payment + Decimal("10000")
    # The final month repays whatever balance was left
    assert last.principal == before.balance
    assert last.balance == Decimal("0.00")
    for row in result.schedule[:-1]:
        assert abs(row.principal + row.interest - result.monthly_payment) <= CENT


def test_balloon_amortizes_over_one_month_less(make_params):
    balloon = compute(make_params(50_000, 4, 60, balloon=10_000), LoanVariant.BALLOON)
    amortized = compute(make_params(50_000, 4, 59), LoanVariant.AMORTIZED)
    assert balloon.monthly_payment == amortized.monthly_payment


def test_balloon_single_month(make_params):
    result = compute(make_params(1_000, 12, 1, balloon=100), LoanVariant.BALLOON)
    (row,) = result.schedule
    assert row.interest == Decimal("10.00")
    assert row.principal == Decimal("1000.00")
    assert row.payment == Decimal("1110.00")
    assert row.balance == Decimal("0.00")


def test_deferred_accrued_interest_collected_at_maturity(make_params):
    result = compute(
        make_params(12_000, 6, 12), LoanVariant.DEFERRED, deferred_interest=DeferredInterest.ACCRUED
    )
    assert result.monthly_payment == Decimal("0.00")
    assert result.deferred_interest is DeferredInterest.ACCRUED
    for row in result.schedule[:-1]:
        assert row.interest == Decimal("60.00")
        assert row.payment == Decimal("0.00")
        assert row.balance == Decimal("12000.00")
    assert result.total_interest == Decimal("720.00")
    assert result.schedule[-1].payment == Decimal("12720.00")
    assert result.schedule[-1].balance == Decimal("0.00")
    assert result.total_cost == Decimal("12720.00")


def test_deferred_waived_interest(make_params):
    result = compute(
        make_params(12_000, 6, 12), LoanVariant.DEFERRED, deferred_interest=DeferredInterest.WAIVED
    )
    assert result.deferred_interest is DeferredInterest.WAIVED
    assert all(row.interest == Decimal("0.00") for row in result.schedule)
    assert result.total_interest == Decimal("0")
    assert result.schedule[-1].payment == Decimal("12000.00")
    assert result.total_cost == Decimal("12000")


def test_deferred_final_payment_reconciles_with_rounded_rows(make_params):
    # 10000 * 5% / 12 = 41.666... per month, rounded to 41.67 on every row
    result = compute(make_params(10_000, 5, 7), LoanVariant.DEFERRED)
    assert result.schedule[-1].payment == Decimal("10000") + result.total_interest
    assert result.total_interest == Decimal("41.67") * 7


def test_zero_rate_amortized_is_straight_line(make_params):
    result = compute(make_params(1_200, 0, 12), LoanVariant.AMORTIZED)
    assert result.monthly_payment == Decimal("100.00")
    assert all(row.interest == Decimal("0.00") for row in result.schedule)
    assert result.schedule[-1].balance == Decimal("0.00")
    assert result.total_interest == Decimal("0")


def test_zero_rate_with_uneven_division_clears_balance(make_params):
    result = compute(make_params(100, 0, 3), LoanVariant.AMORTIZED)
    assert result.monthly_payment == Decimal("33.33")
    assert result.schedule[-1].balance == Decimal("0.00")


def test_zero_rate_balloon(make_params):
    result = compute(make_params(1_100, 0, 12, balloon=500), LoanVariant.BALLOON)
    assert result.monthly_payment == Decimal("100.00")
    assert result.schedule[-1].principal == Decimal("0.00")
    assert result.schedule[-1].payment == Decimal("600.00")


@pytest.mark.parametrize("variant", list(LoanVariant))
def test_schedule_shape_and_balance_invariants(make_params, variant):
    params = make_params(75_000, 5.25, 84, balloon=5_000)
    result = compute(params, variant)
    assert len(result.schedule) == params.term_months
    assert [row.month for row in result.schedule] == list(range(1, 85))
    balances = [row.balance for row in result.schedule]
    assert all(b >= 0 for b in balances)
    assert all(later <= earlier for earlier, later in zip(balances, balances[1:]))
    assert balances[-1] == Decimal("0.00")
    assert result.total_interest == sum(row.interest for row in result.schedule)
    assert result.total_cost == params.principal + result.total_interest


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"principal": 0}, "Principal"),
        ({"principal": -5}, "Principal"),
        ({"term": 0}, "Term"),
        ({"rate": -1}, "rate"),
        ({"balloon": -1}, "Balloon"),
    ],
)
def test_invalid_inputs_raise(make_params, overrides, message):
    with pytest.raises(InvalidInputError, match=message):
        compute(make_params(**overrides), LoanVariant.AMORTIZED)


def test_variant_tags_are_accepted(make_params):
    result = compute(make_params(20_000, 5, 24), "interest-only")
    assert result.variant is LoanVariant.INTEREST_ONLY
    assert LoanVariant.parse("Interest_Only") is LoanVariant.INTEREST_ONLY
    with pytest.raises(InvalidInputError):
        LoanVariant.parse("weekly")


def test_results_are_independent(make_params):
    params = make_params(10_000, 3, 12)
    first = compute(params, LoanVariant.AMORTIZED)
    second = compute(params, LoanVariant.AMORTIZED)
    assert first == second
    assert first is not second


def test_policy_registry(make_params):
    params = make_params(10_000, 3, 12)
    assert isinstance(policy_for(LoanVariant.AMORTIZED, params), AmortizedPolicy)
    assert isinstance(policy_for(LoanVariant.INTEREST_ONLY, params), InterestOnlyPolicy)
    assert isinstance(policy_for(LoanVariant.BALLOON, params), BalloonPolicy)
    deferred = policy_for(LoanVariant.DEFERRED, params, DeferredInterest.WAIVED)
    assert isinstance(deferred, DeferredPolicy)
    assert deferred.interest_policy is DeferredInterest.WAIVED
    assert deferred.monthly_payment == 0


def test_float_inputs_are_coerced(make_params):
    from loan_planner.data_models import LoanParams

    params = LoanParams(principal=20000.0, annual_rate_percent=5.0, term_months=24)
    assert params.principal == Decimal("20000.0")
    result = compute(params, LoanVariant.INTEREST_ONLY)
    assert result.monthly_payment == Decimal("83.33")


def test_deferred_policy_final_month_on_its_own(make_params):
    policy = policy_for(LoanVariant.DEFERRED, make_params(12_000, 6, 12), DeferredInterest.ACCRUED)
    interest, principal, payment = policy.period(12, Decimal("12000"))
    assert principal == Decimal("12000")
    assert payment == Decimal("12720.00")
    # Repeated calls give the same answer
    assert policy.period(12, Decimal("12000")) == (interest, principal, payment)


def test_deferred_policy_waived_final_month(make_params):
    policy = policy_for(LoanVariant.DEFERRED, make_params(12_000, 6, 12), DeferredInterest.WAIVED)
    assert policy.period(12, Decimal("12000")) == (Decimal("0"), Decimal("12000"), Decimal("12000"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"principal": "1e27"},
        {"principal": "1e999990"},
        {"balloon": "1e20"},
        {"rate": "1e999990"},
    ],
)
def test_out_of_range_inputs_raise_invalid_input(make_params, overrides):
    with pytest.raises(InvalidInputError):
        compute(make_params(**overrides), LoanVariant.AMORTIZED)


def test_largest_supported_principal(make_params):
    result = compute(make_params("1e15", 1000, 12), LoanVariant.DEFERRED)
    assert result.schedule[-1].balance == Decimal("0.00")
    assert result.total_cost == Decimal("1e15") + result.total_interest
