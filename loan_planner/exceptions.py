"""Exceptions raised by the loan planner core."""


class InvalidInputError(ValueError):
    """Loan parameters that no repayment schedule can be built from.

    Raised for a non-positive principal, a negative rate, a non-positive term
    or a negative balloon amount. Callers recover by collecting the input
    again.
    """
