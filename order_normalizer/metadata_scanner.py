"""Scan WooFood-style order metadata for delivery method, time and date."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from order_normalizer.context import MetadataScan
from order_normalizer.keywords import KeywordTable
from order_normalizer.models import MetaDataEntry

logger = logging.getLogger(__name__)

# One clock time: "7", "19:20", "7:30 PM", "7:30p.m."
CLOCK = r"\d{1,2}(?::\d{2})?\s*(?:[AaPp]\.?[Mm]\.?)?"
RANGE_SEPARATOR = r"(?:-|–|—|~|\bto\b|至|到)"

_TIMESLOT = re.compile(rf"^\s*({CLOCK})\s*{RANGE_SEPARATOR}\s*({CLOCK})\s*$", re.IGNORECASE)

# slot -> key groups, in the order they are reported for the slot
_SLOTS = {
    "method": ("order_method", "order_type"),
    "time": ("delivery_timeslot", "delivery_time"),
    "date": ("delivery_date",),
}


def normalize_timeslot(value: str) -> str:
    """Render "19:20-19:40" / "19:20 – 19:40" / "7pm to 8pm" as "start - end"."""
    m = _TIMESLOT.match(value)
    if not m:
        return value.strip()
    return f"{m.group(1).strip()} - {m.group(2).strip()}"


def _scalar_text(value: Any) -> str | None:
    """Render a JSON scalar as text; None for blanks and containers."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "yes" if value else "no"
    text = str(value).strip()
    return text or None


def scan_metadata(entries: Iterable[MetaDataEntry], table: KeywordTable) -> MetadataScan:
    """Ordered scan; the first entry filling a slot wins."""
    slot_keys = {
        slot: frozenset().union(*(table.keys(group) for group in groups))
        for slot, groups in _SLOTS.items()
    }
    found: dict[str, str] = {}
    diagnostics: list[str] = []

    for entry in entries:
        key = (entry.key or "").strip()
        if not key:
            continue
        folded = key.casefold()

        slot = next((name for name, keys in slot_keys.items() if folded in keys), None)
        if slot is not None:
            text = _scalar_text(entry.value)
            if text is not None and slot not in found:
                found[slot] = text
            continue

        if table.match("diagnostic", key):
            if isinstance(entry.value, (dict, list)):
                rendered = json.dumps(entry.value, ensure_ascii=False, default=str)
            else:
                rendered = _scalar_text(entry.value)
            if rendered:
                diagnostics.append(f"{key}: {rendered}")

    time_raw = found.get("time")
    if time_raw is not None:
        time_raw = normalize_timeslot(time_raw)

    scan = MetadataScan(
        order_method_raw=found.get("method"),
        time_raw=time_raw,
        date_raw=found.get("date"),
        diagnostics=tuple(diagnostics),
    )
    logger.debug(
        "Metadata scan: method=%s time=%s date=%s diagnostics=%d",
        scan.order_method_raw, scan.time_raw, scan.date_raw, len(scan.diagnostics),
    )
    return scan
