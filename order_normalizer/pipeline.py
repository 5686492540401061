"""Order normalization pipeline.

    raw order -> metadata scan, fee classification, note extraction
              -> method -> fees -> address -> subtotal -> fee list
              -> canonical order (+ invariant warnings)

Every step runs inside a guard: a step that raises is logged, recorded on
its span and replaced by its "signal absent" result, so a single bad field
never aborts the whole order. Only a missing order is a caller error.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, TypeVar

from opentelemetry.trace import Status, StatusCode

from order_normalizer import audit
from order_normalizer.address_resolver import resolve_delivery_address
from order_normalizer.amounts import ZERO, format_amount, is_zero, quantize, to_decimal
from order_normalizer.config import config
from order_normalizer.context import (
    DeliverySignal,
    ExtractionContext,
    FeeScan,
    MetadataScan,
    NoteExtraction,
    ResolvedFees,
)
from order_normalizer.fee_classifier import classify_fee_lines
from order_normalizer.fee_lines import synthesize_fee_lines
from order_normalizer.fee_reconciler import reconcile_fees
from order_normalizer.invariants import check_invariants
from order_normalizer.keywords import KeywordTable, default_table
from order_normalizer.metadata_scanner import scan_metadata
from order_normalizer.method_resolver import resolve_method
from order_normalizer.models import (
    CanonicalOrder,
    MetaDataEntry,
    OrderMethod,
    RawFeeLine,
    RawOrder,
    RawTaxLine,
    SignalSource,
    TaxEntry,
)
from order_normalizer.note_extractor import extract_note, strip_legacy_annotations
from order_normalizer.subtotal import reconcile_subtotal
from order_normalizer.telemetry import get_tracer

logger = logging.getLogger(__name__)

T = TypeVar("T")

GUEST_NAME = "Guest"

# Keys written by to_raw_order; all are known metadata keys
METHOD_KEY = "exwfood_order_method"
TIME_KEY = "exwfood_time_deli"
DATE_KEY = "exwfood_date_deli"


# ---------------------------------------------------------------------------
# Small derivations
# ---------------------------------------------------------------------------


def normalize_tax_label(label: str) -> str:
    upper = label.upper()
    if "GST" in upper:
        return "GST"
    if "PST" in upper:
        return "PST"
    return label.strip()


def tax_total(raw: RawOrder) -> Decimal:
    """``total_tax`` when the storefront sent one, else the sum of tax lines."""
    stated = to_decimal(raw.total_tax)
    if not is_zero(stated):
        return quantize(stated)
    return quantize(sum((to_decimal(line.tax_total) for line in raw.tax_lines), ZERO))


def customer_name(raw: RawOrder) -> str:
    return raw.billing.full_name() or raw.shipping.full_name() or GUEST_NAME


def contact_info(raw: RawOrder) -> str:
    return (raw.billing.phone or raw.billing.email or "").strip()


def _tax_entries(lines: Iterable[RawTaxLine]) -> list[TaxEntry]:
    return [
        TaxEntry(
            label=normalize_tax_label(line.label),
            rate_percent=line.rate_percent,
            tax_total=format_amount(to_decimal(line.tax_total)),
        )
        for line in lines
    ]


# ---------------------------------------------------------------------------
# Step guard
# ---------------------------------------------------------------------------


def _run_step(ctx: ExtractionContext, name: str, fn: Callable[[], T], fallback: T) -> T:
    tracer = get_tracer()
    with tracer.start_as_current_span(f"normalizer.{name}") as span:
        try:
            return fn()
        except Exception as exc:
            logger.exception("Normalization step %s failed for order %s", name, ctx.order_id)
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            audit.log_step_failed(ctx.order_id, name, exc)
            ctx.failed_steps.append(name)
            return fallback


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(raw: RawOrder | Mapping[str, Any] | None, table: KeywordTable | None = None) -> CanonicalOrder:
    """Resolve a raw storefront order into a CanonicalOrder."""
    if raw is None:
        raise ValueError("normalize() requires a raw order")
    if not isinstance(raw, RawOrder):
        if not isinstance(raw, Mapping):
            raise ValueError(f"Expected an order mapping, got {type(raw).__name__}")
        # Field validators coerce malformed values, so any mapping validates
        raw = RawOrder.model_validate(raw)
    table = table or default_table()

    tracer = get_tracer()
    with tracer.start_as_current_span("normalizer.normalize", attributes={"order.id": raw.id}) as span:
        trace_id = format(span.get_span_context().trace_id, "032x")
        audit.log_normalization_started(raw.id, trace_id)
        t0 = time.perf_counter()

        ctx = ExtractionContext(order_id=raw.id, note=strip_legacy_annotations(raw.customer_note))

        # 1-3. Independent, read-only scans
        ctx.metadata = _run_step(
            ctx, "metadata_scan", lambda: scan_metadata(raw.meta_data, table), MetadataScan()
        )
        ctx.fees = _run_step(
            ctx, "fee_classification", lambda: classify_fee_lines(raw.fee_lines, table), FeeScan()
        )
        ctx.extraction = _run_step(
            ctx, "note_extraction",
            lambda: extract_note(ctx.note, ctx.metadata.diagnostics, table),
            NoteExtraction(),
        )

        # 4. Delivery vs. pickup
        ctx.signal = _run_step(
            ctx, "method_resolution",
            lambda: resolve_method(raw.billing, raw.shipping, ctx.metadata, ctx.extraction, table),
            DeliverySignal(method=OrderMethod.PICKUP, source=SignalSource.FALLBACK),
        )
        method = ctx.signal.method

        # 5. Fees
        ctx.resolved = _run_step(
            ctx, "fee_reconciliation",
            lambda: reconcile_fees(ctx.signal, ctx.fees, ctx.extraction),
            ResolvedFees(),
        )

        # 6. Address
        delivery_address = _run_step(
            ctx, "address_resolution",
            lambda: resolve_delivery_address(method, raw.billing, raw.shipping),
            None,
        )

        # 7. Subtotal
        total = _run_step(ctx, "total", lambda: quantize(to_decimal(raw.total)), ZERO)
        tax = _run_step(ctx, "tax_total", lambda: tax_total(raw), ZERO)
        subtotal = _run_step(
            ctx, "subtotal",
            lambda: reconcile_subtotal(
                raw.line_items, total, tax, ctx.resolved.delivery_fee, ctx.resolved.tip
            ),
            total,
        )

        # 8. Fee list
        fee_lines = _run_step(
            ctx, "fee_lines",
            lambda: synthesize_fee_lines(
                ctx.signal, ctx.resolved, ctx.fees, config.tip_label, config.delivery_fee_label
            ),
            [],
        )

        order = CanonicalOrder(
            id=raw.id,
            number=raw.number,
            status=raw.status,
            date_created=raw.date_created,
            customer_name=customer_name(raw),
            contact_info=contact_info(raw),
            payment_method=raw.payment_method_title or raw.payment_method,
            method=method,
            time_window=ctx.signal.time_window,
            delivery_date=ctx.metadata.date_raw,
            delivery_address=delivery_address if method == OrderMethod.DELIVERY else None,
            delivery_fee=ctx.resolved.delivery_fee if method == OrderMethod.DELIVERY else None,
            tip=ctx.resolved.tip,
            subtotal=subtotal,
            tax_total=tax,
            total=total,
            fee_lines=fee_lines,
            tax_lines=_run_step(ctx, "tax_lines", lambda: _tax_entries(raw.tax_lines), []),
            line_items=list(raw.line_items),
            note=ctx.note,
            billing=raw.billing,
            shipping=raw.shipping,
            is_printed=raw.is_printed,
            is_read=raw.is_read,
            notification_shown=raw.notification_shown,
        )
        warnings = _run_step(ctx, "invariants", lambda: check_invariants(order), [])
        order = order.model_copy(update={"warnings": warnings})

        duration_ms = (time.perf_counter() - t0) * 1000.0
        audit.log_normalization_completed(
            order_id=raw.id,
            trace_id=trace_id,
            method=method.value,
            method_source=ctx.signal.source.value,
            has_delivery_fee=order.delivery_fee is not None,
            has_tip=order.tip is not None,
            warning_count=len(warnings),
            duration_ms=duration_ms,
        )

        span.set_attribute("order.method", method.value)
        span.set_attribute("order.warning_count", len(warnings))
        span.set_attribute("order.failed_steps", len(ctx.failed_steps))

        return order


def normalize_many(
    raws: Iterable[RawOrder | Mapping[str, Any]],
    table: KeywordTable | None = None,
    max_workers: int | None = None,
) -> list[CanonicalOrder]:
    """Normalize a batch concurrently; results keep the input order."""
    table = table or default_table()
    get_tracer()  # provider is created before the workers start
    workers = max(1, max_workers or config.max_workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda raw: normalize(raw, table), raws))


def to_raw_order(order: CanonicalOrder) -> RawOrder:
    """Re-serialize a canonical order into the storefront input shape.

    Normalizing the result yields the same canonical order; nothing is
    written into the note.
    """
    meta_data = [MetaDataEntry(key=METHOD_KEY, value=order.method.value)]
    if order.time_window:
        meta_data.append(MetaDataEntry(key=TIME_KEY, value=order.time_window))
    if order.delivery_date:
        meta_data.append(MetaDataEntry(key=DATE_KEY, value=order.delivery_date))

    return RawOrder(
        id=order.id,
        number=order.number,
        status=order.status,
        date_created=order.date_created,
        customer_note=order.note,
        billing=order.billing,
        shipping=order.shipping,
        meta_data=meta_data,
        fee_lines=[
            RawFeeLine(name=entry.name, total=entry.total, total_tax=entry.total_tax)
            for entry in order.fee_lines
        ],
        tax_lines=[
            RawTaxLine(label=line.label, rate_percent=line.rate_percent, tax_total=line.tax_total)
            for line in order.tax_lines
        ],
        line_items=list(order.line_items),
        total=str(order.total),
        total_tax=str(order.tax_total),
        payment_method_title=order.payment_method,
        is_printed=order.is_printed,
        is_read=order.is_read,
        notification_shown=order.notification_shown,
    )
