import pytest

from order_normalizer.metadata_scanner import normalize_timeslot, scan_metadata
from order_normalizer.models import MetaDataEntry


def _entries(*pairs):
    return [MetaDataEntry(key=k, value=v) for k, v in pairs]


def test_known_keys_fill_slots(table):
    scan = scan_metadata(
        _entries(
            ("exwfood_order_method", "delivery"),
            ("exwfood_time_deli", "18:30"),
            ("exwfood_date_deli", "2025-05-20"),
        ),
        table,
    )
    assert scan.order_method_raw == "delivery"
    assert scan.time_raw == "18:30"
    assert scan.date_raw == "2025-05-20"


def test_keys_match_case_insensitively(table):
    scan = scan_metadata(_entries(("EXWFOOD_ORDER_METHOD", "pickup")), table)
    assert scan.order_method_raw == "pickup"


def test_first_match_per_slot_wins(table):
    scan = scan_metadata(
        _entries(("_order_type", "pickup"), ("exwfood_order_method", "delivery")),
        table,
    )
    assert scan.order_method_raw == "pickup"


def test_blank_values_do_not_fill_a_slot(table):
    scan = scan_metadata(
        _entries(("exwfood_order_method", ""), ("order_type", "delivery")),
        table,
    )
    assert scan.order_method_raw == "delivery"


def test_timeslot_is_normalized(table):
    scan = scan_metadata(_entries(("exwfood_timeslot", "19:20–19:40")), table)
    assert scan.time_raw == "19:20 - 19:40"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("19:20-19:40", "19:20 - 19:40"),
        ("7:00 PM to 7:30 PM", "7:00 PM - 7:30 PM"),
        ("18:00 ~ 18:30", "18:00 - 18:30"),
        ("19:20 - 19:40", "19:20 - 19:40"),
        ("2025-05-20", "2025-05-20"),
        (" 18:30 ", "18:30"),
    ],
)
def test_normalize_timeslot(value, expected):
    assert normalize_timeslot(value) == expected


def test_domain_keys_become_diagnostics(table):
    scan = scan_metadata(
        _entries(
            ("exwfood_tip", "3.00"),
            ("_shipping_method_title", "Local pickup"),
            ("_wc_order_attribution_source_type", "typein"),
        ),
        table,
    )
    assert scan.diagnostics == ("exwfood_tip: 3.00", "_shipping_method_title: Local pickup")
    assert scan.order_method_raw is None


def test_non_scalar_values_are_tolerated(table):
    scan = scan_metadata(
        _entries(("exwfood_order_method", {"a": 1}), ("delivery_options", ["x"]), ("", "ignored")),
        table,
    )
    assert scan.order_method_raw is None
    assert scan.diagnostics == ('delivery_options: ["x"]',)


def test_missing_metadata_yields_nulls(table):
    scan = scan_metadata([], table)
    assert scan.order_method_raw is None
    assert scan.time_raw is None
    assert scan.diagnostics == ()
