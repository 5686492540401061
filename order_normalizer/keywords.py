"""Keyword tables as data.

The tables map a semantic kind to per-locale term lists, plus the known
metadata keys per slot. The bundled ``keywords.json`` can be replaced with
``ORDER_KEYWORDS_PATH`` and narrowed with ``ORDER_KEYWORD_LOCALES``;
adding a locale or a synonym is a data change only.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from order_normalizer.config import config

logger = logging.getLogger(__name__)

BUNDLED_TABLE = Path(__file__).with_name("keywords.json")

# Kinds the pipeline looks up; a table missing one of them is rejected.
REQUIRED_KINDS = (
    "tip_label",
    "tip",
    "delivery_fee",
    "tip_phrase",
    "delivery_fee_phrase",
    "pickup",
    "asap",
    "delivery",
    "diagnostic",
    "annotation_tip",
    "annotation_delivery_fee",
    "annotation_time",
    "annotation_method",
)

REQUIRED_SLOTS = (
    "order_method",
    "order_type",
    "delivery_time",
    "delivery_timeslot",
    "delivery_date",
)


class KeywordTable(BaseModel):
    """kind -> {locale -> [terms]} plus slot -> [metadata keys]."""

    model_config = ConfigDict(frozen=True)

    keywords: dict[str, dict[str, list[str]]] = Field(default_factory=dict)
    metadata_keys: dict[str, list[str]] = Field(default_factory=dict)
    locales: tuple[str, ...] = ()

    _terms: dict[str, tuple[str, ...]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        for kind, by_locale in self.keywords.items():
            selected: list[str] = []
            for locale, words in by_locale.items():
                if self.locales and locale.lower() not in self.locales:
                    continue
                selected.extend(word.strip().casefold() for word in words if word.strip())
            # Longest first so "delivery fee" wins over "delivery" in alternations
            self._terms[kind] = tuple(sorted(dict.fromkeys(selected), key=len, reverse=True))

    def missing(self) -> list[str]:
        """Names of required kinds/slots the table does not define."""
        gaps = [kind for kind in REQUIRED_KINDS if kind not in self.keywords]
        gaps += [f"metadata_keys.{slot}" for slot in REQUIRED_SLOTS if slot not in self.metadata_keys]
        return gaps

    def terms(self, kind: str) -> tuple[str, ...]:
        """Casefolded terms for *kind* across the enabled locales, longest first."""
        return self._terms.get(kind, ())

    def keys(self, slot: str) -> frozenset[str]:
        return frozenset(key.casefold() for key in self.metadata_keys.get(slot, []))

    def match(self, kind: str, text: str | None) -> str | None:
        """Return the first term of *kind* contained in *text* (case-insensitive)."""
        if not text:
            return None
        folded = text.casefold()
        for term in self.terms(kind):
            if term in folded:
                return term
        return None

    def equals(self, kind: str, text: str | None) -> bool:
        """True when *text* is exactly one of the terms of *kind*."""
        return bool(text) and text.strip().casefold() in self.terms(kind)

    def pattern(self, kind: str) -> str:
        """Regex alternation of the terms of *kind*, longest first."""
        return "|".join(re.escape(term) for term in self.terms(kind))


def parse_keyword_table(data: dict, locales: tuple[str, ...] = ()) -> KeywordTable:
    """Validate a raw mapping into a KeywordTable."""
    table = KeywordTable.model_validate({**data, "locales": locales})
    gaps = table.missing()
    if gaps:
        raise ValueError(f"Keyword table is missing: {', '.join(gaps)}")
    return table


@lru_cache(maxsize=8)
def load_keyword_table(path: str = "", locales: tuple[str, ...] = ()) -> KeywordTable:
    """Load the keyword table from *path*, or the bundled table when empty."""
    if path:
        raw = Path(path).read_text(encoding="utf-8")
        logger.info("Loaded keyword table from %s", path)
    else:
        raw = BUNDLED_TABLE.read_text(encoding="utf-8")
    return parse_keyword_table(json.loads(raw), locales)


def default_table() -> KeywordTable:
    """The table selected by the environment configuration."""
    return load_keyword_table(config.keywords_path, config.locales)
