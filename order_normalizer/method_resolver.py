"""Decide delivery vs. pickup.

First applicable rule wins:

1. pickup keyword in the note (or a pickup annotation)  -> pickup
2. metadata method value names pickup / delivery        -> that method
   ("ASAP" with no delivery word counts as pickup when metadata is silent)
3. shipping address set and different from billing      -> delivery
4. delivery keyword in the note                         -> delivery
5. otherwise                                            -> pickup

Operator-entered notes override stale metadata, so rule 1 precedes rule 2.
"""

from __future__ import annotations

import logging

from order_normalizer.context import DeliverySignal, MetadataScan, NoteExtraction
from order_normalizer.keywords import KeywordTable
from order_normalizer.models import Address, OrderMethod, SignalSource

logger = logging.getLogger(__name__)


def addresses_diverge(billing: Address, shipping: Address) -> bool:
    """True when the shipping address is set and differs from billing."""
    shipping_line = shipping.formatted()
    if not shipping_line:
        return False
    return shipping_line.casefold() != billing.formatted().casefold()


def method_from_metadata(value: str | None, table: KeywordTable) -> OrderMethod:
    if not value:
        return OrderMethod.UNKNOWN
    if table.match("pickup", value):
        return OrderMethod.PICKUP
    if table.match("delivery", value):
        return OrderMethod.DELIVERY
    return OrderMethod.UNKNOWN


def _decide(
    billing: Address,
    shipping: Address,
    metadata: MetadataScan,
    extraction: NoteExtraction,
    table: KeywordTable,
) -> tuple[OrderMethod, SignalSource]:
    if extraction.explicit_pickup:
        return OrderMethod.PICKUP, SignalSource.NOTE_KEYWORD

    declared = method_from_metadata(metadata.order_method_raw, table)
    if declared != OrderMethod.UNKNOWN:
        return declared, SignalSource.METADATA
    if extraction.asap_pickup:
        return OrderMethod.PICKUP, SignalSource.NOTE_KEYWORD

    if addresses_diverge(billing, shipping):
        return OrderMethod.DELIVERY, SignalSource.ADDRESS_DIVERGENCE
    if extraction.delivery_keyword:
        return OrderMethod.DELIVERY, SignalSource.NOTE_KEYWORD
    return OrderMethod.PICKUP, SignalSource.FALLBACK


def resolve_method(
    billing: Address,
    shipping: Address,
    metadata: MetadataScan,
    extraction: NoteExtraction,
    table: KeywordTable,
) -> DeliverySignal:
    method, source = _decide(billing, shipping, metadata, extraction, table)
    time_window = metadata.time_raw or extraction.annotation_time or extraction.time_window

    logger.debug("Resolved method=%s via %s", method.value, source.value)
    return DeliverySignal(method=method, source=source, time_window=time_window)
