from decimal import Decimal

from order_normalizer.context import DeliverySignal, FeeScan, NoteExtraction
from order_normalizer.fee_reconciler import reconcile_fees
from order_normalizer.models import FeeSource, OrderMethod, RawFeeLine

DELIVERY = DeliverySignal(method=OrderMethod.DELIVERY)
PICKUP = DeliverySignal(method=OrderMethod.PICKUP)


def _fee_scan(delivery=None, tip=None):
    return FeeScan(
        delivery_fee=None if delivery is None else Decimal(delivery),
        tip=None if tip is None else Decimal(tip),
        delivery_fee_line=None if delivery is None else RawFeeLine(name="Delivery Fee", total=delivery),
        tip_line=None if tip is None else RawFeeLine(name="Tip", total=tip),
    )


def test_tip_precedence():
    extraction = NoteExtraction(annotation_tip=Decimal("2"), tip=Decimal("1"))
    resolved = reconcile_fees(PICKUP, _fee_scan(tip="3.00"), extraction)
    assert resolved.tip == Decimal("2.00")
    assert resolved.tip_source == FeeSource.ANNOTATION

    resolved = reconcile_fees(PICKUP, _fee_scan(tip="3.00"), NoteExtraction(tip=Decimal("1")))
    assert resolved.tip == Decimal("3.00")
    assert resolved.tip_source == FeeSource.FEE_LINE

    resolved = reconcile_fees(PICKUP, _fee_scan(), NoteExtraction(tip=Decimal("1")))
    assert resolved.tip_source == FeeSource.NOTE


def test_zero_candidates_fall_through():
    extraction = NoteExtraction(annotation_tip=Decimal("0"))
    resolved = reconcile_fees(PICKUP, _fee_scan(tip="4.00"), extraction)
    assert resolved.tip == Decimal("4.00")


def test_zero_tip_everywhere_is_none():
    resolved = reconcile_fees(PICKUP, _fee_scan(tip="0.00"), NoteExtraction())
    assert resolved.tip is None
    assert resolved.tip_source is None


def test_pickup_never_gets_delivery_fee():
    extraction = NoteExtraction(annotation_delivery_fee=Decimal("5"))
    resolved = reconcile_fees(PICKUP, _fee_scan(delivery="4.00"), extraction)
    assert resolved.delivery_fee is None


def test_delivery_fee_from_fee_line():
    resolved = reconcile_fees(DELIVERY, _fee_scan(delivery="4.5"), NoteExtraction(delivery_fee=Decimal("3")))
    assert resolved.delivery_fee == Decimal("4.50")
    assert resolved.delivery_fee_source == FeeSource.FEE_LINE


def test_fee_line_zero_is_a_confirmed_zero():
    resolved = reconcile_fees(DELIVERY, _fee_scan(delivery="0.00"), NoteExtraction())
    assert resolved.delivery_fee == Decimal("0.00")
    assert resolved.delivery_fee_source == FeeSource.FEE_LINE


def test_no_default_delivery_fee():
    resolved = reconcile_fees(DELIVERY, _fee_scan(), NoteExtraction())
    assert resolved.delivery_fee is None
    assert resolved.delivery_fee_source is None
