"""Utility functions for the loan planner.

This module holds the input-boundary helpers that turn user-entered strings
into ``Decimal`` values, and the rounding rule applied to every amount the
engine emits.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext, localcontext

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. Non-finite values such as ``"NaN"`` or ``"inf"`` are rejected so
    that they never reach the engine. It raises ``ValueError`` if conversion
    fails.
    """
    try:
        cleaned = str(value).strip().replace(",", "")
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a money amount with optional ``k``/``m`` suffixes.

    Accepts plain numbers ("500000") and shorthand such as "500k" meaning
    500_000 or "1.2m" meaning 1_200_000.
    """
    text = str(value).strip().lower().replace(",", "")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    return decimal_from_str(text) * factor


def round_money(value: Decimal) -> Decimal:
    """Round an amount to cents, halves away from zero.

    The precision is widened when needed so that large amounts keep all of
    their integer digits instead of failing to quantize.
    """
    value = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
