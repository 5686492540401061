"""Classify untagged fee lines as delivery fee, tip or other.

Rules (case-insensitive, every enabled locale):
1. exact tip label, or a tip keyword in the name -> tip
2. a delivery-fee keyword in the name -> delivery fee
3. anything else -> other

The first line of each kind is authoritative, except that a zero tip line
yields to a later non-zero one (a zero tip means "no tip"). The remaining
lines of a kind are folded into "other" so a duplicated fee is never counted
twice; they are also kept in ``duplicate_lines`` with the kind they matched.
"""

from __future__ import annotations

import logging
from typing import Iterable

from order_normalizer.amounts import is_zero, to_decimal
from order_normalizer.context import FeeClassification, FeeScan
from order_normalizer.keywords import KeywordTable
from order_normalizer.models import FeeKind, RawFeeLine

logger = logging.getLogger(__name__)


def classify_fee_name(name: str, table: KeywordTable) -> FeeKind:
    """Kind of a single fee line judged by its display name."""
    if table.equals("tip_label", name) or table.match("tip", name):
        return FeeKind.TIP
    if table.match("delivery_fee", name):
        return FeeKind.DELIVERY_FEE
    return FeeKind.OTHER


def _claimant(lines: list[RawFeeLine], kinds: list[FeeKind], kind: FeeKind, skip_zero: bool = False) -> int | None:
    """Index of the line that owns *kind*, or None."""
    candidates = [i for i, k in enumerate(kinds) if k == kind]
    if skip_zero:
        candidates = [i for i in candidates if not is_zero(to_decimal(lines[i].total))] or candidates
    return candidates[0] if candidates else None


def classify_fee_lines(lines: Iterable[RawFeeLine], table: KeywordTable) -> FeeScan:
    lines = list(lines)
    kinds = [classify_fee_name(line.name, table) for line in lines]
    tip_index = _claimant(lines, kinds, FeeKind.TIP, skip_zero=True)
    delivery_index = _claimant(lines, kinds, FeeKind.DELIVERY_FEE)

    delivery_line = lines[delivery_index] if delivery_index is not None else None
    tip_line = lines[tip_index] if tip_index is not None else None
    others: list[RawFeeLine] = []
    duplicates: list[tuple[FeeKind, RawFeeLine]] = []
    classifications: list[FeeClassification] = []

    for index, (line, kind) in enumerate(zip(lines, kinds)):
        amount = to_decimal(line.total)

        if kind == FeeKind.OTHER:
            others.append(line)
        elif index not in (tip_index, delivery_index):
            logger.debug("Folding duplicate %s line into other: %r", kind.value, line.name)
            duplicates.append((kind, line))
            kind = FeeKind.OTHER

        classifications.append(FeeClassification(kind=kind, amount=amount, line=line))

    return FeeScan(
        delivery_fee=to_decimal(delivery_line.total) if delivery_line else None,
        tip=to_decimal(tip_line.total) if tip_line else None,
        delivery_fee_line=delivery_line,
        tip_line=tip_line,
        other_lines=tuple(others),
        duplicate_lines=tuple(duplicates),
        classifications=tuple(classifications),
    )
