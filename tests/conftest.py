# tests/conftest.py
from __future__ import annotations

from decimal import Decimal

import pytest

from loan_planner.data_models import LoanParams


@pytest.fixture
def make_params():
    """Factory for loan parameters; amounts may be given as strings or ints."""

    def _factory(principal="100000", rate="6", term=360, balloon="0", currency="USD"):
        return LoanParams(
            principal=Decimal(str(principal)),
            annual_rate_percent=Decimal(str(rate)),
            term_months=term,
            balloon_amount=Decimal(str(balloon)),
            currency_code=currency,
        )

    return _factory


@pytest.fixture
def client():
    from loan_planner_web.app import app

    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client
