import pytest

from order_normalizer.context import MetadataScan, NoteExtraction
from order_normalizer.method_resolver import addresses_diverge, method_from_metadata, resolve_method
from order_normalizer.models import Address, OrderMethod, SignalSource

from conftest import BILLING, OTHER_ADDRESS

billing = Address(**BILLING)
elsewhere = Address(**OTHER_ADDRESS)
blank = Address()


def _resolve(table, metadata=None, extraction=None, shipping=blank):
    return resolve_method(billing, shipping, metadata or MetadataScan(), extraction or NoteExtraction(), table)


def test_note_pickup_overrides_metadata_delivery(table):
    signal = _resolve(
        table,
        metadata=MetadataScan(order_method_raw="delivery"),
        extraction=NoteExtraction(pickup_keyword="pickup"),
    )
    assert signal.method == OrderMethod.PICKUP
    assert signal.source == SignalSource.NOTE_KEYWORD


def test_pickup_annotation_counts_as_note_pickup(table):
    signal = _resolve(table, extraction=NoteExtraction(annotation_pickup=True), shipping=elsewhere)
    assert signal.method == OrderMethod.PICKUP


def test_metadata_method(table):
    signal = _resolve(table, metadata=MetadataScan(order_method_raw="Delivery"))
    assert signal.method == OrderMethod.DELIVERY
    assert signal.source == SignalSource.METADATA


def test_asap_with_metadata_pickup(table):
    signal = _resolve(
        table,
        metadata=MetadataScan(order_method_raw="pickup"),
        extraction=NoteExtraction(asap=True),
    )
    assert signal.method == OrderMethod.PICKUP
    assert signal.source == SignalSource.METADATA


def test_asap_does_not_override_metadata_delivery(table):
    signal = _resolve(
        table,
        metadata=MetadataScan(order_method_raw="delivery"),
        extraction=NoteExtraction(asap=True),
    )
    assert signal.method == OrderMethod.DELIVERY


def test_asap_alone_is_pickup(table):
    signal = _resolve(table, extraction=NoteExtraction(asap=True), shipping=elsewhere)
    assert signal.method == OrderMethod.PICKUP
    assert signal.source == SignalSource.NOTE_KEYWORD


def test_asap_with_delivery_word_is_delivery(table):
    signal = _resolve(table, extraction=NoteExtraction(asap=True, delivery_keyword="delivery"))
    assert signal.method == OrderMethod.DELIVERY
    assert signal.source == SignalSource.NOTE_KEYWORD


def test_address_divergence(table):
    signal = _resolve(table, shipping=elsewhere)
    assert signal.method == OrderMethod.DELIVERY
    assert signal.source == SignalSource.ADDRESS_DIVERGENCE


def test_note_delivery_keyword(table):
    signal = _resolve(table, extraction=NoteExtraction(delivery_keyword="配送"))
    assert signal.method == OrderMethod.DELIVERY
    assert signal.source == SignalSource.NOTE_KEYWORD


def test_fallback_is_pickup(table):
    signal = _resolve(table)
    assert signal.method == OrderMethod.PICKUP
    assert signal.source == SignalSource.FALLBACK


def test_time_window_prefers_metadata(table):
    signal = _resolve(
        table,
        metadata=MetadataScan(time_raw="19:20 - 19:40"),
        extraction=NoteExtraction(annotation_time="18:00", time_window="17:00"),
    )
    assert signal.time_window == "19:20 - 19:40"
    assert _resolve(table, extraction=NoteExtraction(time_window="17:00")).time_window == "17:00"


def test_same_address_in_different_case_does_not_diverge():
    shipping = Address(**{**BILLING, "address_1": "12 HARBOUR ST", "city": "vancouver"})
    assert not addresses_diverge(billing, shipping)
    assert not addresses_diverge(billing, blank)
    assert addresses_diverge(billing, elsewhere)


@pytest.mark.parametrize(
    "value, method",
    [
        ("Local Pickup", OrderMethod.PICKUP),
        ("takeaway", OrderMethod.PICKUP),
        ("delivery", OrderMethod.DELIVERY),
        ("外卖", OrderMethod.DELIVERY),
        ("dine-in", OrderMethod.UNKNOWN),
        (None, OrderMethod.UNKNOWN),
    ],
)
def test_method_from_metadata(table, value, method):
    assert method_from_metadata(value, table) == method
