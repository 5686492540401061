"""Merchandise subtotal with a three-tier fallback that never raises.

1. sum(unit price x quantity) over the line items
2. total - tax - delivery fee - tip, clamped at zero
3. the raw total unchanged
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable

from order_normalizer.amounts import ZERO, quantize, to_decimal
from order_normalizer.models import RawLineItem

logger = logging.getLogger(__name__)


def line_items_sum(items: Iterable[RawLineItem]) -> Decimal:
    """Sum of unit price x quantity; unparseable prices count as zero."""
    total = ZERO
    for item in items:
        total += to_decimal(item.price) * Decimal(item.quantity)
    return quantize(total)


def reconcile_subtotal(
    items: Iterable[RawLineItem],
    total: Decimal,
    tax: Decimal,
    delivery_fee: Decimal | None,
    tip: Decimal | None,
) -> Decimal:
    try:
        primary = line_items_sum(items)
        if primary > ZERO:
            return primary
    except (InvalidOperation, ArithmeticError, TypeError) as exc:
        logger.warning("Line-item subtotal failed: %s", exc)

    try:
        derived = total - tax - (delivery_fee or ZERO) - (tip or ZERO)
        logger.debug("Subtotal derived from total: %s", derived)
        return quantize(max(ZERO, derived))
    except (InvalidOperation, ArithmeticError, TypeError) as exc:
        logger.warning("Derived subtotal failed: %s", exc)

    return total
