"""Extract delivery signals from diagnostics and the customer note.

Two passes:

(a) Annotation pass: "label: value" tokens held in memory by the
    ExtractionContext (metadata diagnostics). Never read from note text.
(b) Natural-language pass over the customer note: pickup / delivery
    keywords, a time of day, and amounts that follow tip or delivery-fee
    phrases, in English and Chinese.

Annotation values win over the note when present and non-zero. A zero
amount from either pass is "absent"; only a classified fee line can assert
a genuine zero fee.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from functools import lru_cache
from typing import Callable, Iterable, TypeVar

from order_normalizer.amounts import nonzero, parse_amount
from order_normalizer.context import NoteExtraction
from order_normalizer.keywords import KeywordTable
from order_normalizer.metadata_scanner import RANGE_SEPARATOR

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_HHMM = r"\d{1,2}:\d{2}(?:\s*[AaPp]\.?[Mm]\.?)?"

# Priority order: range, single 24h/12h time, Chinese "下午3点[30分]"
_TIME_RANGE = re.compile(rf"(?<![\d:])({_HHMM})\s*{RANGE_SEPARATOR}\s*({_HHMM})(?!\d)", re.IGNORECASE)
_TIME_SINGLE = re.compile(rf"(?<![\d:])({_HHMM})(?![\d:])", re.IGNORECASE)
_TIME_CHINESE = re.compile(r"((?:上午|中午|下午|晚上)\s*\d{1,2}\s*[点时](?:\s*\d{1,2}\s*分钟?|半)?)")

_LABEL_VALUE = re.compile(r"^\s*([^:：]+?)\s*[:：]\s*(.*?)\s*$", re.DOTALL)

# Legacy clients appended a metadata block to the note
_LEGACY_HEADER = re.compile(r"^\s*-{2,}\s*(?:元数据|metadata)\b.*$", re.IGNORECASE)
_LEGACY_LINE = re.compile(r"^\s*_?(?:exwfood|woofood)_\w+\s*[:：]", re.IGNORECASE)

_AMOUNT = r"([$¥￥€£]?\s*\d+(?:\.\d{1,2})?)(?!\.?\d|[:%])"


@lru_cache(maxsize=32)
def _amount_pattern(phrases: str) -> re.Pattern[str]:
    return re.compile(rf"(?:{phrases})\s*[:：]?\s*{_AMOUNT}", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_legacy_annotations(note: str | None) -> str:
    """Drop the "--- 元数据 ---" block and exwfood_* lines older builds wrote."""
    if not note:
        return ""
    kept = [
        line for line in note.splitlines()
        if not _LEGACY_HEADER.match(line) and not _LEGACY_LINE.match(line)
    ]
    return "\n".join(kept).strip()


def _guarded(step: str, fn: Callable[[], T], default: T) -> T:
    try:
        return fn()
    except (re.error, ValueError, ArithmeticError) as exc:
        logger.warning("Note extraction step %s failed: %s", step, exc)
        return default


def find_time_window(text: str | None) -> str | None:
    """First time window in *text*: range, then single time, then Chinese form."""
    if not text:
        return None
    m = _TIME_RANGE.search(text)
    if m:
        return f"{m.group(1).strip()} - {m.group(2).strip()}"
    m = _TIME_SINGLE.search(text)
    if m:
        return m.group(1).strip()
    m = _TIME_CHINESE.search(text)
    if m:
        return m.group(1).strip()
    return None


def find_amount_after(text: str | None, table: KeywordTable, kind: str) -> Decimal | None:
    """Amount following the first phrase of *kind*; zero counts as absent."""
    phrases = table.pattern(kind)
    if not text or not phrases:
        return None
    for m in _amount_pattern(phrases).finditer(text):
        amount = nonzero(parse_amount(m.group(1)))
        if amount is not None:
            return amount
    return None


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def _annotation_pass(diagnostics: Iterable[str], table: KeywordTable) -> dict:
    found: dict = {"tip": None, "delivery_fee": None, "time": None, "pickup": False}

    for token in diagnostics:
        m = _LABEL_VALUE.match(token)
        if not m:
            continue
        label, value = m.group(1), m.group(2)

        if table.match("annotation_tip", label):
            if found["tip"] is None:
                found["tip"] = nonzero(parse_amount(value))
        elif table.match("annotation_delivery_fee", label):
            if found["delivery_fee"] is None:
                found["delivery_fee"] = nonzero(parse_amount(value))
        elif table.match("annotation_time", label):
            if found["time"] is None:
                found["time"] = find_time_window(value)

        if table.match("annotation_method", label) and table.match("pickup", value):
            found["pickup"] = True

    return found


def extract_note(note: str | None, diagnostics: Iterable[str], table: KeywordTable) -> NoteExtraction:
    """Run the annotation pass then the natural-language pass."""
    text = strip_legacy_annotations(note)

    annotations = _guarded(
        "annotations", lambda: _annotation_pass(diagnostics, table),
        {"tip": None, "delivery_fee": None, "time": None, "pickup": False},
    )

    pickup_keyword = _guarded("pickup_keyword", lambda: table.match("pickup", text), None)
    delivery_keyword = _guarded("delivery_keyword", lambda: table.match("delivery", text), None)
    asap = _guarded("asap", lambda: table.match("asap", text) is not None, False)
    time_window = _guarded("time_window", lambda: find_time_window(text), None)
    tip = _guarded("tip_amount", lambda: find_amount_after(text, table, "tip_phrase"), None)
    delivery_fee = _guarded(
        "delivery_fee_amount", lambda: find_amount_after(text, table, "delivery_fee_phrase"), None
    )

    extraction = NoteExtraction(
        annotation_tip=annotations["tip"],
        annotation_delivery_fee=annotations["delivery_fee"],
        annotation_time=annotations["time"],
        annotation_pickup=annotations["pickup"],
        pickup_keyword=pickup_keyword,
        delivery_keyword=delivery_keyword,
        asap=asap,
        time_window=time_window,
        tip=tip,
        delivery_fee=delivery_fee,
    )
    logger.debug("Note extraction: %s", extraction)
    return extraction
