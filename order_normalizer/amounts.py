"""Decimal-safe money helpers.

Amounts arrive as decimal strings (sometimes numbers, sometimes with a
currency symbol). They are never routed through binary floats on the way
to ``Decimal``.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from order_normalizer.config import config

ZERO = Decimal("0")

_CURRENCY_NOISE = re.compile(r"[\s,$¥￥€£]")


def parse_amount(value: Any) -> Decimal | None:
    """Parse *value* as a Decimal.

    Returns None unless it is a finite number that can be held at minor-unit
    precision.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Decimal, int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None

    cleaned = _CURRENCY_NOISE.sub("", value)
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    try:
        # Must fit the context precision at minor-unit scale
        amount.quantize(config.minor_unit)
    except InvalidOperation:
        return None
    return amount


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Parse *value*, falling back to *default* (zero) on failure."""
    amount = parse_amount(value)
    return default if amount is None else amount


def quantize(amount: Decimal) -> Decimal:
    """Round to the configured currency minor unit."""
    return amount.quantize(config.minor_unit, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal | None) -> str:
    """Render an amount as a decimal string at minor-unit precision."""
    return str(quantize(amount if amount is not None else ZERO))


def is_zero(amount: Decimal | None) -> bool:
    return amount is None or quantize(amount) == ZERO


def nonzero(amount: Decimal | None) -> Decimal | None:
    """Treat a zero amount as absent."""
    return None if is_zero(amount) else amount


def within_minor_unit(left: Decimal, right: Decimal) -> bool:
    """True when two amounts differ by at most one minor unit."""
    return abs(left - right) <= config.minor_unit
