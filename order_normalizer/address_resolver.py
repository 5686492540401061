"""Choose the delivery address to surface."""

from __future__ import annotations

from order_normalizer.method_resolver import addresses_diverge
from order_normalizer.models import Address, OrderMethod


def resolve_delivery_address(method: OrderMethod, billing: Address, shipping: Address) -> str | None:
    """Formatted delivery address, or None for pickup / no address data.

    Storefront plugins often keep the delivery address in the billing slot,
    so billing is the fallback whenever shipping adds nothing new. Without
    any street data the company / country line is better than nothing.
    """
    if method != OrderMethod.DELIVERY:
        return None
    if addresses_diverge(billing, shipping):
        return shipping.formatted()
    return (
        billing.formatted()
        or shipping.formatted()
        or shipping.locality()
        or billing.locality()
        or None
    )
