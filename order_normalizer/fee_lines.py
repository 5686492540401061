"""Build the auxiliary fee list shown on screen and on receipts."""

from __future__ import annotations

from order_normalizer.amounts import format_amount, is_zero, to_decimal
from order_normalizer.context import DeliverySignal, FeeScan, ResolvedFees
from order_normalizer.models import FeeEntry, FeeKind, FeeSource, OrderMethod, RawFeeLine


def _entry(kind: FeeKind, amount, source: FeeSource | None, line: RawFeeLine | None, label: str) -> FeeEntry:
    # Keep the storefront's own name and tax when the amount came from its line
    if source == FeeSource.FEE_LINE and line is not None:
        return FeeEntry(
            name=line.name.strip() or label,
            kind=kind,
            total=format_amount(amount),
            total_tax=format_amount(to_decimal(line.total_tax)),
        )
    return FeeEntry(name=label, kind=kind, total=format_amount(amount), total_tax=format_amount(None))


def _other_entry(line: RawFeeLine) -> FeeEntry:
    return FeeEntry(
        name=line.name.strip(),
        kind=FeeKind.OTHER,
        total=format_amount(to_decimal(line.total)),
        total_tax=format_amount(to_decimal(line.total_tax)),
    )


def synthesize_fee_lines(
    signal: DeliverySignal,
    resolved: ResolvedFees,
    fees: FeeScan,
    tip_label: str,
    delivery_fee_label: str,
) -> list[FeeEntry]:
    entries: list[FeeEntry] = []

    if signal.method == OrderMethod.DELIVERY and resolved.delivery_fee is not None:
        entries.append(_entry(
            FeeKind.DELIVERY_FEE, resolved.delivery_fee, resolved.delivery_fee_source,
            fees.delivery_fee_line, delivery_fee_label,
        ))
    if not is_zero(resolved.tip):
        entries.append(_entry(FeeKind.TIP, resolved.tip, resolved.tip_source, fees.tip_line, tip_label))

    emitted = {entry.kind for entry in entries}
    # A duplicate only shows beside an entry of its own kind, never in its place
    duplicates = [line for kind, line in fees.duplicate_lines if kind in emitted]
    for line in [*fees.other_lines, *duplicates]:
        entries.append(_other_entry(line))

    return dedupe_fee_entries(entries)


def dedupe_fee_entries(entries: list[FeeEntry]) -> list[FeeEntry]:
    """One entry per delivery-fee / tip kind; drop exact repeats of any entry."""
    seen_kinds: set[FeeKind] = set()
    seen_lines: set[tuple[str, str]] = set()
    result: list[FeeEntry] = []

    for entry in entries:
        if entry.kind != FeeKind.OTHER:
            if entry.kind in seen_kinds:
                continue
            seen_kinds.add(entry.kind)
        signature = (entry.name.casefold(), entry.total)
        if signature in seen_lines:
            continue
        seen_lines.add(signature)
        result.append(entry)
    return result
