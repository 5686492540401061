"""Pick the delivery fee and tip from annotation, fee line and note.

Precedence for both amounts: annotation -> fee line -> note. The first
non-zero candidate wins. A fee line asserting zero is the only way to get a
confirmed zero delivery fee. There is no guessed default fee: a delivery
order without any signal keeps ``delivery_fee = None``.
"""

from __future__ import annotations

from decimal import Decimal

from order_normalizer.amounts import ZERO, nonzero, quantize
from order_normalizer.context import DeliverySignal, FeeScan, NoteExtraction, ResolvedFees
from order_normalizer.models import FeeSource, OrderMethod


def _first_nonzero(
    candidates: list[tuple[FeeSource, Decimal | None]],
) -> tuple[Decimal | None, FeeSource | None]:
    for source, amount in candidates:
        amount = nonzero(amount)
        if amount is not None:
            return quantize(amount), source
    return None, None


def reconcile_fees(signal: DeliverySignal, fees: FeeScan, extraction: NoteExtraction) -> ResolvedFees:
    tip, tip_source = _first_nonzero([
        (FeeSource.ANNOTATION, extraction.annotation_tip),
        (FeeSource.FEE_LINE, fees.tip),
        (FeeSource.NOTE, extraction.tip),
    ])

    delivery_fee: Decimal | None = None
    delivery_fee_source: FeeSource | None = None
    if signal.method == OrderMethod.DELIVERY:
        delivery_fee, delivery_fee_source = _first_nonzero([
            (FeeSource.ANNOTATION, extraction.annotation_delivery_fee),
            (FeeSource.FEE_LINE, fees.delivery_fee),
            (FeeSource.NOTE, extraction.delivery_fee),
        ])
        if delivery_fee is None and fees.delivery_fee_line is not None:
            delivery_fee, delivery_fee_source = quantize(ZERO), FeeSource.FEE_LINE

    return ResolvedFees(
        delivery_fee=delivery_fee,
        delivery_fee_source=delivery_fee_source,
        tip=tip,
        tip_source=tip_source,
    )
