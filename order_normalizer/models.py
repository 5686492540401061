"""Pydantic models for the order normalizer: input and output contracts.

``RawOrder`` mirrors a WooCommerce order export and is deliberately lenient:
amounts are kept as decimal strings (numbers are coerced on validation) and
unknown keys are ignored. ``CanonicalOrder`` is the resolved model handed to
the UI and printing layers.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    """Coerce JSON numbers to strings so amounts stay decimal strings."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


class OrderMethod(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    UNKNOWN = "unknown"


class SignalSource(str, Enum):
    METADATA = "metadata"
    NOTE_KEYWORD = "noteKeyword"
    ADDRESS_DIVERGENCE = "addressDivergence"
    FALLBACK = "fallback"


class FeeKind(str, Enum):
    DELIVERY_FEE = "deliveryFee"
    TIP = "tip"
    OTHER = "other"


class FeeSource(str, Enum):
    ANNOTATION = "annotation"
    FEE_LINE = "feeLine"
    NOTE = "note"


# ---------------------------------------------------------------------------
# Raw order (as received)
# ---------------------------------------------------------------------------


class _RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Address(_RawModel):
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _as_text(value)

    def formatted(self) -> str:
        """Single-line street address; empty when no address line is set."""
        parts = [self.address_1, self.address_2, self.city, self.state, self.postcode]
        return ", ".join(part.strip() for part in parts if part and part.strip())

    def locality(self) -> str:
        """Company and country, for addresses without street data."""
        parts = [self.company, self.country]
        return ", ".join(part.strip() for part in parts if part and part.strip())

    def is_empty(self) -> bool:
        return not self.formatted() and not self.locality()

    def full_name(self) -> str:
        return " ".join(p.strip() for p in (self.first_name, self.last_name) if p and p.strip())


class MetaDataEntry(_RawModel):
    key: str = ""
    value: Any = None

    @field_validator("key", mode="before")
    @classmethod
    def _key(cls, value: Any) -> Any:
        return _as_text(value)


class RawFeeLine(_RawModel):
    name: str = ""
    total: str = "0"
    total_tax: str = "0"

    @field_validator("name", "total", "total_tax", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _as_text(value)


class RawTaxLine(_RawModel):
    label: str = ""
    rate_percent: str = "0"
    tax_total: str = "0"

    @field_validator("label", "rate_percent", "tax_total", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _as_text(value)


class RawLineItem(_RawModel):
    name: str = ""
    product_id: int | None = None
    quantity: int = 1
    price: str = "0"
    total: str = "0"

    @field_validator("name", "price", "total", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("product_id", mode="before")
    @classmethod
    def _product_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(Decimal(str(value).strip()))
        except (ArithmeticError, ValueError, TypeError):
            return None

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> Any:
        try:
            return int(Decimal(str(value)))
        except (ArithmeticError, ValueError, TypeError):
            return 0


class RawOrder(_RawModel):
    id: str = ""
    number: str = ""
    status: str = ""
    date_created: str = ""
    customer_note: str = ""
    billing: Address = Field(default_factory=Address)
    shipping: Address = Field(default_factory=Address)
    meta_data: list[MetaDataEntry] = Field(default_factory=list)
    fee_lines: list[RawFeeLine] = Field(default_factory=list)
    tax_lines: list[RawTaxLine] = Field(default_factory=list)
    line_items: list[RawLineItem] = Field(default_factory=list)
    total: str = "0"
    total_tax: str = "0"
    payment_method: str = ""
    payment_method_title: str = ""

    # Owned by the surrounding application; passed through untouched
    is_printed: bool = False
    is_read: bool = False
    notification_shown: bool = False

    @field_validator(
        "id", "number", "status", "date_created", "customer_note", "total", "total_tax",
        "payment_method", "payment_method_title", mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("billing", "shipping", mode="before")
    @classmethod
    def _address(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, Address)) else {}

    @field_validator("meta_data", "fee_lines", "tax_lines", "line_items", mode="before")
    @classmethod
    def _list(cls, value: Any) -> Any:
        # Entries that are not objects are dropped, not fatal
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, _RawModel))]

    @field_validator("is_printed", "is_read", "notification_shown", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)


# ---------------------------------------------------------------------------
# Canonical order (output)
# ---------------------------------------------------------------------------


class FeeEntry(BaseModel):
    name: str
    kind: FeeKind = FeeKind.OTHER
    total: str = "0.00"
    total_tax: str = "0.00"


class TaxEntry(BaseModel):
    label: str
    rate_percent: str = "0"
    tax_total: str = "0.00"


class OrderWarning(BaseModel):
    code: str
    message: str
    details: dict = Field(default_factory=dict)


class CanonicalOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    number: str = ""
    status: str = ""
    date_created: str = ""
    customer_name: str = ""
    contact_info: str = ""
    payment_method: str = ""

    method: OrderMethod
    time_window: str | None = None
    delivery_date: str | None = None
    delivery_address: str | None = None
    delivery_fee: Decimal | None = None
    tip: Decimal | None = None

    subtotal: Decimal
    tax_total: Decimal
    total: Decimal
    fee_lines: list[FeeEntry] = Field(default_factory=list)
    tax_lines: list[TaxEntry] = Field(default_factory=list)
    line_items: list[RawLineItem] = Field(default_factory=list)

    note: str = ""
    billing: Address = Field(default_factory=Address)
    shipping: Address = Field(default_factory=Address)

    is_printed: bool = False
    is_read: bool = False
    notification_shown: bool = False

    warnings: list[OrderWarning] = Field(default_factory=list)

    @property
    def is_delivery(self) -> bool:
        return self.method == OrderMethod.DELIVERY
