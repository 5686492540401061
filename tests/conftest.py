"""Shared fixtures: keyword table and a WooCommerce-shaped order builder."""

from __future__ import annotations

import copy

import pytest

from order_normalizer.keywords import load_keyword_table

BILLING = {
    "first_name": "Ada",
    "last_name": "Wong",
    "address_1": "12 Harbour St",
    "city": "Vancouver",
    "state": "BC",
    "postcode": "V6B 1A1",
    "country": "CA",
    "email": "ada@example.com",
    "phone": "604-555-0100",
}

OTHER_ADDRESS = {
    "first_name": "Ada",
    "last_name": "Wong",
    "address_1": "88 Granville Ave",
    "city": "Richmond",
    "state": "BC",
    "postcode": "V6Y 1N2",
    "country": "CA",
}


def build_order(**overrides) -> dict:
    order = {
        "id": 1042,
        "number": "1042",
        "status": "processing",
        "date_created": "2025-05-20T18:45:00",
        "customer_note": "",
        "billing": copy.deepcopy(BILLING),
        "shipping": {},
        "meta_data": [],
        "fee_lines": [],
        "tax_lines": [],
        "line_items": [
            {"name": "Beef Noodle Soup", "product_id": 11, "quantity": 2, "price": "15.00", "total": "30.00"},
            {"name": "Spring Rolls", "product_id": 12, "quantity": 1, "price": "12.00", "total": "12.00"},
        ],
        "total": "45.00",
        "total_tax": "3.00",
        "payment_method": "cod",
        "payment_method_title": "Cash on delivery",
    }
    order.update(overrides)
    return order


@pytest.fixture
def table():
    return load_keyword_table()


@pytest.fixture
def make_order():
    return build_order
