"""Invariant checks on a canonical order.

Rules implemented:
1. subtotal + tax + delivery fee + tip == total (within one minor unit)
2. pickup orders carry no delivery fee and no delivery address
3. at most one delivery-fee entry and one tip entry in the fee list
4. delivery orders without any fee signal are flagged for the operator

Findings are reported, never raised: they describe the storefront data,
not a failure of the normalizer.
"""

from __future__ import annotations

from collections import Counter

from order_normalizer.amounts import ZERO, within_minor_unit
from order_normalizer.models import CanonicalOrder, FeeKind, OrderMethod, OrderWarning
from order_normalizer.telemetry import get_tracer


def check_invariants(order: CanonicalOrder) -> list[OrderWarning]:
    """Run all invariant checks and return the warnings."""
    with get_tracer().start_as_current_span("normalizer.invariant_checks"):
        warnings: list[OrderWarning] = []

        # ---- Rule 1: amounts add up to the total ----
        expected = order.subtotal + order.tax_total + (order.delivery_fee or ZERO) + (order.tip or ZERO)
        if not within_minor_unit(expected, order.total):
            warnings.append(
                OrderWarning(
                    code="TOTAL_MISMATCH",
                    message=(
                        f"Subtotal, tax, delivery fee and tip add up to {expected} "
                        f"but the order total is {order.total}"
                    ),
                    details={
                        "expected": str(expected),
                        "stated": str(order.total),
                        "difference": str(order.total - expected),
                    },
                )
            )

        # ---- Rule 2: pickup guard ----
        if order.method == OrderMethod.PICKUP and (
            order.delivery_fee is not None or order.delivery_address is not None
        ):
            warnings.append(
                OrderWarning(
                    code="PICKUP_HAS_DELIVERY_DATA",
                    message="Pickup order carries a delivery fee or delivery address",
                    details={
                        "delivery_fee": None if order.delivery_fee is None else str(order.delivery_fee),
                        "has_address": order.delivery_address is not None,
                    },
                )
            )

        # ---- Rule 3: one entry per fee kind ----
        counts = Counter(entry.kind for entry in order.fee_lines if entry.kind != FeeKind.OTHER)
        duplicated = sorted(kind.value for kind, count in counts.items() if count > 1)
        if duplicated:
            warnings.append(
                OrderWarning(
                    code="DUPLICATE_FEE_KIND",
                    message=f"Fee list repeats: {', '.join(duplicated)}",
                    details={"kinds": duplicated},
                )
            )

        # ---- Rule 4: delivery without a fee signal ----
        if order.method == OrderMethod.DELIVERY and order.delivery_fee is None:
            warnings.append(
                OrderWarning(
                    code="DELIVERY_FEE_UNRESOLVED",
                    message="Delivery order has no delivery fee signal",
                    details={},
                )
            )

        return warnings
