from decimal import Decimal

from order_normalizer.invariants import check_invariants
from order_normalizer.models import CanonicalOrder, FeeEntry, FeeKind, OrderMethod


def _order(**overrides) -> CanonicalOrder:
    fields = {
        "id": "1",
        "method": OrderMethod.DELIVERY,
        "delivery_address": "12 Harbour St, Vancouver",
        "delivery_fee": Decimal("4.00"),
        "tip": Decimal("1.00"),
        "subtotal": Decimal("40.00"),
        "tax_total": Decimal("3.00"),
        "total": Decimal("48.00"),
        "fee_lines": [
            FeeEntry(name="Delivery Fee", kind=FeeKind.DELIVERY_FEE, total="4.00"),
            FeeEntry(name="Tip", kind=FeeKind.TIP, total="1.00"),
        ],
    }
    fields.update(overrides)
    return CanonicalOrder(**fields)


def _codes(order):
    return [w.code for w in check_invariants(order)]


def test_consistent_order_has_no_warnings():
    assert _codes(_order()) == []


def test_rounding_within_one_minor_unit_is_accepted():
    assert _codes(_order(total=Decimal("48.01"))) == []


def test_total_mismatch():
    warnings = check_invariants(_order(total=Decimal("50.00")))
    assert [w.code for w in warnings] == ["TOTAL_MISMATCH"]
    assert warnings[0].details["difference"] == "2.00"


def test_pickup_with_delivery_data():
    order = _order(method=OrderMethod.PICKUP, fee_lines=[])
    assert _codes(order) == ["PICKUP_HAS_DELIVERY_DATA"]


def test_duplicate_fee_kind():
    order = _order(fee_lines=[
        FeeEntry(name="Tip", kind=FeeKind.TIP, total="0.50"),
        FeeEntry(name="Gratuity", kind=FeeKind.TIP, total="0.50"),
    ])
    warnings = check_invariants(order)
    assert [w.code for w in warnings] == ["DUPLICATE_FEE_KIND"]
    assert warnings[0].details == {"kinds": ["tip"]}


def test_delivery_without_fee_signal():
    order = _order(delivery_fee=None, total=Decimal("44.00"), fee_lines=[])
    assert _codes(order) == ["DELIVERY_FEE_UNRESOLVED"]
